"""Constants shared by the resolver and the aiohttp adapter."""

# Key sources, in precedence order.
FUNCTIONS_KEY_HEADER = 'x-functions-key'
FUNCTIONS_KEY_QUERY = 'code'

# Request attribute holding the resolved AuthorizationLevel.
AUTH_LEVEL_KEY = 'auth_level'

# Route parameter carrying the target function name.
FUNCTION_NAME_PARAM = 'function_name'

LOGGER_NAME = 'funchost.auth'
