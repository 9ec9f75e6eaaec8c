"""
Standard exit codes for gitcms commands.

Following Unix/POSIX conventions for command-line tools.
"""

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
NOT_FOUND = 64           # File, schema or template does not exist
API_ERROR = 65           # Git provider API call failed
CONFIG_ERROR = 66        # Configuration file error
PERMISSION_ERROR = 67    # Namespace not accessible
NETWORK_ERROR = 68       # Network connection failed
AUTH_ERROR = 69          # Authentication failed
DATA_ERROR = 70          # Invalid input
CONFLICT = 72            # Stale revision or existing target
UNAVAILABLE = 73         # Schema repository unavailable
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'ConfigurationError': CONFIG_ERROR,
    'ValidationError': DATA_ERROR,
    'AuthenticationError': AUTH_ERROR,
    'NamespaceError': PERMISSION_ERROR,
    'NotFoundError': NOT_FOUND,
    'ConflictError': CONFLICT,
    'GitProviderError': API_ERROR,
    'FileOperationError': API_ERROR,
    'SchemaRepositoryError': UNAVAILABLE,
    'PermissionError': PERMISSION_ERROR,
    'ConnectionError': NETWORK_ERROR,
    'TimeoutError': NETWORK_ERROR,
    'JSONDecodeError': DATA_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    return EXCEPTION_EXIT_CODES.get(exc.__class__.__name__, GENERAL_ERROR)
