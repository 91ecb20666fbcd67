"""Shortcode generation utility

This module provides a helper function for generating short, random,
URL-safe identifiers for newly created links.

Functions:
    generate_shortcode(length=7, alphabet=ALPHABET):
        Generate a random string suitable for use as a URL slug.

Example:
    >>> from clickshortener.utils import generate_shortcode
    >>> generate_shortcode()
    'ibCJIAD'
"""

import secrets
import string

from clickshortener.constants import Defaults


ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
BASE = len(ALPHABET)  # base62: 26 lowercase + 26 uppercase + 10 digits


def generate_shortcode(length: int = Defaults.SHORTCODE_LENGTH, alphabet: str = ALPHABET) -> str:
    """Generate a random fixed-length shortcode.

    Every character is drawn independently from `alphabet` using the
    operating system's CSPRNG, so codes are neither sequential nor
    predictable from previously issued ones.

    Args:
        length (int, optional):
            Length of the resulting shortcode. Defaults to 7.

        alphabet (str, optional):
            Characters to draw from. Defaults to the Base62 alphabet,
            which is URL-safe and matches the custom shortcode pattern.

    Returns:
        str: A random shortcode of exactly `length` characters.

    NOTE:
        - With the default parameters the code space holds 62^7 (~3.5e12)
          values. The generator does NOT guarantee uniqueness: the data store's
          insert is the authority, and callers regenerate on collision.
        - The function has no side effects.
    """
    if not isinstance(length, int) or isinstance(length, bool):
        raise TypeError(f'Length must be of type integer (given type: {type(length)}).')
    if length <= 0:
        raise ValueError(f'Length must be a positive integer (given value: {length}).')
    if not isinstance(alphabet, str):
        raise TypeError(f'Alphabet must be of type string (given type: {type(alphabet)}).')
    if not alphabet:
        raise ValueError(f'Alphabet must be a non-empty string (given value: {alphabet!r}).')

    return ''.join(secrets.choice(alphabet) for _ in range(length))
