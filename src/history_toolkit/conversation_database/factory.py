from history_toolkit.conversation_database.key_value.provider import RedisProvider
from history_toolkit.conversation_database.provider import BackendKind, ProviderConfig, StoreProvider
from history_toolkit.conversation_database.relational.provider import SQLProvider
from history_toolkit.errors import UnsupportedBackendError


async def create_provider(config: ProviderConfig) -> StoreProvider:
    """Build the backend named by 'config.backend_kind' (relational when empty).

    Raises:
        UnsupportedBackendError: The backend kind is not recognised.
        BackendError: The backend could not be reached or initialised.
    """
    backend = BackendKind.parse(config.backend_kind)
    match backend:
        case BackendKind.RELATIONAL:
            return await SQLProvider.create(config.connection_string, config.debug_enabled, config.log_level)
        case BackendKind.KEY_VALUE:
            return await RedisProvider.create(config.connection_string, config.debug_enabled, config.log_level)
        case _:
            raise UnsupportedBackendError(str(backend))
