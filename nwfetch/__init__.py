"""nwfetch - a fetch client for the WEB/1 protocol over NWEP."""

from nwfetch.application.client import (
    Client,
    with_keypair,
    with_on_notify,
    with_pool_size,
    with_seed,
    with_settings,
    with_timeout,
)
from nwfetch.composition import default, do, get, init, post, shutdown, version
from nwfetch.constants import DEFAULT_PORT, Method, Status
from nwfetch.domain.address import AddressError, WebURL, normalize_url, parse_url
from nwfetch.domain.errors import (
    FetchError,
    IdentityError,
    NwfetchError,
    Stage,
    StatusError,
    is_bad_request,
    is_conflict,
    is_forbidden,
    is_internal_error,
    is_not_found,
    is_rate_limited,
    is_unauthorized,
    is_unavailable,
)
from nwfetch.domain.identity import Keypair
from nwfetch.domain.request import Request, RequestBuilder, new
from nwfetch.domain.response import Response
from nwfetch.ports.engine import EngineSettings, Header, Notification

__version__ = "0.1.0"
