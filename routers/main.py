import logging, uuid
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from errors import ApiError
from logging_config import request_id_var, setup_logging
from routers import sites
from settings import settings

setup_logging(settings.log_level)

app = FastAPI(title="SharePoint Site Read-Only API")
app.include_router(sites.router)

@app.middleware("http")
async def assign_request_id(request: Request, call_next):
    token = request_id_var.set(str(uuid.uuid4()))
    try:
        return await call_next(request)
    finally:
        request_id_var.reset(token)

@app.exception_handler(ApiError)
async def handle_api_error(request: Request, error: ApiError):
    logging.error(f"API Error: {error.message} - Details: {error.details}")
    return JSONResponse(error.to_dict(), status_code=error.status_code)

@app.exception_handler(Exception)
async def handle_generic_error(request: Request, error: Exception):
    logging.critical(f"Unhandled Exception: {error}", exc_info=True)
    return JSONResponse({"error": "An unexpected server error occurred."}, status_code=500)

@app.get("/health")
async def health(): return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=7000)
