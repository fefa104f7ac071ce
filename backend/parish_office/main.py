from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Ensure all SQLAlchemy models are imported so relationships resolve
import parish_office.models  # noqa: F401

from parish_office import __version__
from parish_office.api import certificates, records, requests
from parish_office.api.system import router as system_router  # /health, /version
from parish_office.config import configure_logging, get_settings

configure_logging()

app = FastAPI(title="Parish Office", version=__version__)

# --- CORS for the admin / public frontends ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(system_router)        # /health, /version
app.include_router(records.router)       # /records
app.include_router(requests.router)      # /requests (+ /requests/{id}/issue)
app.include_router(certificates.router)  # /certificates
