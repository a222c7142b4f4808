import asyncio, logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List
from office365.runtime.auth.token_response import TokenResponse
from office365.sharepoint.client_context import ClientContext
from auth import get_sharepoint_token
from errors import SiteConnectionError
from models import SiteGroup, SiteUser
from services.batch import PendingOperation, QueryBatch
from settings import settings

log = logging.getLogger(__name__)

VISITORS = "associated_visitor_group"
MEMBERS  = "associated_member_group"
OWNERS   = "associated_owner_group"

USER_FIELDS = ["Id", "LoginName", "Title"]

# ─────────────────────────────────────────────── client objects → models
def parse_user(user) -> SiteUser:
    props = user.properties
    return SiteUser(Id=props.get("Id"), LoginName=props.get("LoginName"), Title=props.get("Title"))

def parse_users(users) -> List[SiteUser]:
    return [parse_user(u) for u in users]

def parse_group(group) -> SiteGroup:
    props = group.properties
    return SiteGroup(Id=props.get("Id"), Title=props.get("Title"), Users=parse_users(group.users))

def parse_properties(property_values) -> Dict[str, object]:
    return dict(property_values.properties)

def to_login_name(identity: str) -> str:
    # bare UPNs become membership claims, claims pass through
    return identity if "|" in identity else f"i:0#.f|membership|{identity}"

# ─────────────────────────────────────────────── site context
class SiteContext:
    """Queues reads and membership changes for one site; nothing is sent until execute_query()."""
    def __init__(self, site_url: str, client: ClientContext, batch: QueryBatch):
        self.site_url = site_url.rstrip("/")
        self.client = client
        self.batch = batch

    @property
    def web(self):
        return self.client.web

    def load_properties(self) -> PendingOperation:
        return self.batch.enqueue(lambda: self.web.all_properties.get(), parse_properties)

    def load_site_users(self) -> PendingOperation:
        return self.batch.enqueue(lambda: self.web.site_users.get().select(USER_FIELDS), parse_users)

    def load_group(self, association: str) -> PendingOperation:
        def queue():
            group = getattr(self.web, association)
            group.get().select(["Id", "Title"])
            group.users.get().select(USER_FIELDS)
            return group
        return self.batch.enqueue(queue, parse_group)

    def _group_users(self, group: SiteGroup):
        return self.web.site_groups.get_by_id(group.Id).users

    def remove_user_from_group(self, group: SiteGroup, user: SiteUser) -> PendingOperation:
        return self.batch.enqueue(lambda: self._group_users(group).remove_by_id(user.Id))

    def add_user_to_group(self, group: SiteGroup, login_name: str) -> PendingOperation:
        """Queue adding a user by exact login name; no claim expansion is applied here."""
        return self.batch.enqueue(lambda: self._group_users(group).add_user(login_name))

    async def execute_query(self) -> List[PendingOperation]:
        return await self.batch.execute()

@asynccontextmanager
async def connect_to_site(site_url: str) -> AsyncIterator[SiteContext]:
    site_url = site_url.rstrip("/")
    try:
        # fail fast on bad credentials; later refreshes come from the same cache
        await asyncio.to_thread(get_sharepoint_token, site_url)
    except (ValueError, OSError) as e:
        raise SiteConnectionError(f"Could not acquire a token for {site_url}: {e}") from e

    def acquire_token() -> TokenResponse:
        return TokenResponse.from_json({"access_token": get_sharepoint_token(site_url), "token_type": "Bearer"})

    client = ClientContext(site_url).with_access_token(acquire_token)
    log.info(f"Connected to {site_url}")
    batch = QueryBatch(client,
                       retry_count=settings.query_retry_count,
                       retry_delay=settings.query_retry_delay,
                       max_retry_delay=settings.max_retry_delay)
    yield SiteContext(site_url, client, batch)
