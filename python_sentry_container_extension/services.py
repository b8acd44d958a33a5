"""Default service definitions the extension starts from before binding configuration."""
import logging

from .client import ClientBuilder
from .container import ContainerBuilder, Definition, Reference, class_id
from .listeners import ErrorListener, RequestListener, SubRequestListener
from .log_handler import SentryLogHandler
from .options import SentryOptions

OPTIONS = class_id(SentryOptions)
CLIENT_BUILDER = class_id(ClientBuilder)
CLIENT = "sentry.client"
ERROR_LISTENER = class_id(ErrorListener)
REQUEST_LISTENER = class_id(RequestListener)
SUB_REQUEST_LISTENER = class_id(SubRequestListener)
LOG_HANDLER = class_id(SentryLogHandler)


def register_services(container: ContainerBuilder) -> ContainerBuilder:
    container.register(OPTIONS, SentryOptions)
    container.register(CLIENT_BUILDER, ClientBuilder).add_argument(Reference(OPTIONS))
    container.set_definition(
        CLIENT,
        Definition().set_factory((Reference(CLIENT_BUILDER), "initialize")),
    )

    container.register(ERROR_LISTENER, ErrorListener)
    container.register(REQUEST_LISTENER, RequestListener)
    container.register(SUB_REQUEST_LISTENER, SubRequestListener)

    container.set_definition(
        LOG_HANDLER,
        Definition(SentryLogHandler, named_arguments={"level": logging.DEBUG, "bubble": True}),
    )
    return container
