import logging
from typing import Callable, List, Optional
from errors import InvalidRequestError
from models import Err, Ok, Result, SetSiteReadOnlyRequest, SetSiteReadOnlyResponse, SiteGroup, SiteUser
from logging_config import site_url_var
from services.sharepoint import MEMBERS, OWNERS, VISITORS, SiteContext, connect_to_site, to_login_name

log = logging.getLogger(__name__)

EVERYONE_EXCEPT_EXTERNAL = "c:0-.f|rolemanager|spo-grid-all-users/"

def validate_request(req: SetSiteReadOnlyRequest):
    if not req.SiteURL or not req.SiteURL.strip():
        raise InvalidRequestError("SiteURL")
    if not req.Owner or not req.Owner.strip():
        raise InvalidRequestError("Owner")

def is_private_group_site(properties: dict) -> bool:
    value = properties.get("GroupType")
    return value is not None and str(value) == "Private"

def remove_all_users(ctx: SiteContext, visitors: SiteGroup, members: SiteGroup, owners: SiteGroup) -> List[SiteUser]:
    """Queue removal of everyone in the three groups.

    Returns the removed members followed by the removed owners, in the order
    they were found. Visitors are not retained.
    """
    for user in visitors.Users:
        log.info(f"Removing {user.LoginName} from {visitors.Title}")
        ctx.remove_user_from_group(visitors, user)

    retained: List[SiteUser] = []
    for group in (members, owners):
        for user in group.Users:
            retained.append(user)
            log.info(f"Removing {user.LoginName} from {group.Title}")
            ctx.remove_user_from_group(group, user)
    return retained

def queue_visitors(ctx: SiteContext, visitors: SiteGroup, properties: dict,
                   retained: List[SiteUser], site_users: List[SiteUser]):
    if is_private_group_site(properties):
        log.info(f"The site is connected to a private group. Adding existing members/owners to {visitors.Title}")
        for user in reversed(retained):
            log.info(f"Adding {user.LoginName} to {visitors.Title}")
            ctx.add_user_to_group(visitors, user.LoginName)
    else:
        log.info(f"The site is standalone or connected to a public group. Adding Everyone but external users to {visitors.Title}")
        for user in site_users:
            if user.LoginName.startswith(EVERYONE_EXCEPT_EXTERNAL):
                log.info(f"Adding {user.LoginName} to {visitors.Title}")
                ctx.add_user_to_group(visitors, user.LoginName)

async def downgrade(ctx: SiteContext, new_owner: str) -> SetSiteReadOnlyResponse:
    # flush 1: everything we need to know about the site
    properties_op = ctx.load_properties()
    site_users_op = ctx.load_site_users()
    visitors_op   = ctx.load_group(VISITORS)
    members_op    = ctx.load_group(MEMBERS)
    owners_op     = ctx.load_group(OWNERS)
    await ctx.execute_query()

    visitors, members, owners = visitors_op.value, members_op.value, owners_op.value

    # flush 2: empty the groups
    retained = remove_all_users(ctx, visitors, members, owners)
    await ctx.execute_query()

    # flush 3: new owner and read-only audience
    log.info(f"Adding {new_owner} to {owners.Title}")
    ctx.add_user_to_group(owners, to_login_name(new_owner))
    queue_visitors(ctx, visitors, properties_op.value, retained, site_users_op.value)
    await ctx.execute_query()

    return SetSiteReadOnlyResponse(SetReadOnly=True)

async def set_site_read_only(req: SetSiteReadOnlyRequest,
                             connect: Optional[Callable] = None) -> Result[SetSiteReadOnlyResponse]:
    """Make a site read-only; never raises.

    Membership changes already flushed are not rolled back when a later step
    fails, so an error can leave the groups partially emptied.
    """
    connect = connect or connect_to_site
    token = site_url_var.set((req.SiteURL or "-").strip() or "-")
    try:
        validate_request(req)
        async with connect(req.SiteURL.strip()) as ctx:
            return Ok(await downgrade(ctx, req.Owner.strip()))
    except Exception as e:
        log.error(f"Error: {e}", exc_info=True)
        return Err(e)
    finally:
        site_url_var.reset(token)
