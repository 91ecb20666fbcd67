class ClickShortenerError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:clickshortener_error'
    http_status = 500


class InputError(ClickShortenerError):
    """Base exception for rejected caller input."""

    error_code = 'input:input_error'
    http_status = 400


class InvalidUrlError(InputError):
    """Raised when a target URL is not a valid absolute URL."""

    error_code = 'input:invalid_url'


class InvalidShortcodeError(InputError):
    """Raised when a custom shortcode is not alphanumeric."""

    error_code = 'input:invalid_shortcode'


class InvalidExpiryError(InputError):
    """Raised when an expiry can't be parsed as an instant."""

    error_code = 'input:invalid_expiry'


class ShortcodeTakenError(ClickShortenerError):
    """Raised when a custom shortcode is already in use."""

    error_code = 'link:shortcode_taken'
    http_status = 409


class ShortcodeNotFoundError(ClickShortenerError):
    """Raised when no link exists for a shortcode."""

    error_code = 'link:not_found'
    http_status = 404


class ShortcodeExpiredError(ClickShortenerError):
    """Raised when a link exists but its expiry has passed."""

    error_code = 'link:expired'
    http_status = 410


class StoreUnavailableError(ClickShortenerError):
    """Raised when the data store can't complete an operation."""

    error_code = 'store:unavailable'
    http_status = 503


class ConfigurationError(ClickShortenerError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'
