from foodshop.gateway.admin import AdminMutationGateway
from foodshop.gateway.data_gateway import OrderDataGateway, build_data_gateway
from foodshop.gateway.local_cache import LocalOrderCache
from foodshop.gateway.remote import HttpRemoteStore, RemoteStore
from foodshop.gateway.snapshot import StaticSnapshot

__all__ = [
    "AdminMutationGateway",
    "HttpRemoteStore",
    "LocalOrderCache",
    "OrderDataGateway",
    "RemoteStore",
    "StaticSnapshot",
    "build_data_gateway",
]
