from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from auth import require_function_key
from models import Ok, SetSiteReadOnlyRequest, SetSiteReadOnlyResponse
from services import readonly

router = APIRouter(prefix="/api", tags=["sharepoint"], dependencies=[Depends(require_function_key)])

@router.post("/SetSiteReadOnly",
             response_model=SetSiteReadOnlyResponse,
             summary="Set the site to read-only",
             description="Removes everyone from members/owner groups, and adds them or everyone "
                         "to the visitors group (depending on the group being Private or Public)")
@router.post("/sharepoint/site/readonly", include_in_schema=False)
async def api_set_site_read_only(req: SetSiteReadOnlyRequest):
    result = await readonly.set_site_read_only(req)
    if isinstance(result, Ok):
        return result.value
    return JSONResponse(status_code=503, content=result.message)
