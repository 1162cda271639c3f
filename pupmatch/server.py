"""
FastAPI server for the PupMatch matching service.

Exposes:
  - GET /health - Health check
  - POST /run-graph - Execute a graph (discovery)
  - GET /api/dogs/discover - Eligible candidates for a dog
  - POST /api/swipes - Record a like/pass, creating a match on mutual likes
  - GET /api/dogs/{dog_id}/matches - Matches with the other dog attached
  - Dog, medical profile and match message endpoints
  - GET /docs - Interactive API documentation (Swagger UI)
"""

from dotenv import load_dotenv
load_dotenv()

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, status, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Dict, Any, List, Optional, Annotated
import sys
import time

# Import configuration (loads .env automatically)
from pupmatch.config import config, validate_config

# Import logging setup
from pupmatch.utils.logging_config import logger, setup_logging

from pupmatch.graphs.discovery import create_discovery_graph
from pupmatch.models import (
    AgeBand,
    AttributeFilters,
    Candidate,
    Dog,
    DogCreate,
    DogUpdate,
    DogWithMedical,
    Match,
    MatchView,
    MedicalProfile,
    MedicalProfileInput,
    Message,
    MessageRequest,
    SwipeRequest,
    SwipeResult,
)
from pupmatch.tools import profile_tools, swipe_tools
from pupmatch.tools.filter_tools import find_candidates
from pupmatch.tools.repository import MatchingRepository, get_repository
from pupmatch.utils.errors import (
    ConflictError,
    GraphExecutionError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    ValidationError,
)

# Setup logging
setup_logging(debug=config.DEBUG)

# ============================================================
# VALIDATE CONFIGURATION AT STARTUP
# ============================================================
try:
    config_status = validate_config()
    logger.info("✅ Configuration validated successfully")
    for key, value in config_status.items():
        logger.info(f"  {key}: {value}")
except ValueError as e:
    logger.error(f"❌ Configuration error: {e}")
    sys.exit(1)

# ============================================================
# FASTAPI APPLICATION
# ============================================================
app = FastAPI(
    title="PupMatch Matching Service",
    description="Geolocation-based dog discovery, swipes and mutual-like matching",
    version="1.0.0",
)

# ============================================================
# CORS CONFIGURATION
# ============================================================
# Allow requests from the web client during dev.
origins = [
    "http://localhost:5173",  # Vite dev
    "http://localhost:3000",  # React/Next dev
    "http://localhost:5000",  # Express+frontend dev origin
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================
# REQUEST/RESPONSE MODELS
# ============================================================
class GraphRequest(BaseModel):
    """
    Request body for /run-graph endpoint.

    Attributes:
        graph (str): Name of graph to execute. Options: 'discovery'
        input (dict): Input state for the graph.
    """
    graph: str
    input: Dict[str, Any]


class GraphResponse(BaseModel):
    """
    Response body for /run-graph endpoint.

    Attributes:
        success (bool): Whether graph executed successfully
        graph (str): Name of the graph that was executed
        data (dict): Output from the graph
        error (Optional[str]): Error message if something went wrong
    """
    success: bool
    graph: str
    data: Dict[str, Any] = {}
    error: Optional[str] = None


# ============================================================
# DEPENDENCIES
# ============================================================
def require_token(authorization: Annotated[Optional[str], Header()] = None) -> None:
    """Validate the bearer token when API_TOKEN is configured."""
    if config.API_TOKEN:
        expected = f"Bearer {config.API_TOKEN}"
        if authorization != expected:
            logger.warning("Unauthorized request: invalid or missing token")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized",
            )


Repo = Annotated[MatchingRepository, Depends(get_repository)]


# ============================================================
# MIDDLEWARE
# ============================================================
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """
    Middleware to track request processing time.

    Adds X-Process-Time header to all responses showing how long request took.
    """
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


# ============================================================
# ROUTES
# ============================================================

@app.get("/health", tags=["System"])
async def health_check() -> Dict[str, str]:
    """
    Health check endpoint.

    Returns:
        dict: {"status": "healthy"}
    """
    return {"status": "healthy"}


@app.post(
    "/run-graph",
    response_model=GraphResponse,
    tags=["Graphs"],
    dependencies=[Depends(require_token)],
)
async def run_graph(request: GraphRequest, repository: Repo) -> GraphResponse:
    """
    Execute a LangGraph graph and return results.

    Supported graphs:
      - discovery: Filtered candidates scored for compatibility and ranked

    Raises:
        HTTPException: If graph doesn't exist or fails to execute
    """
    logger.info(f"Received request for graph: {request.graph}")
    logger.debug(f"Input keys: {list(request.input.keys())}")

    if request.graph == "discovery":
        graph = create_discovery_graph(repository)
        logger.debug("Created discovery graph")
    else:
        logger.error(f"Unknown graph: {request.graph}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown graph: {request.graph}. Valid options: discovery",
        )

    start_time = time.time()
    try:
        result = graph.invoke(request.input)
    except Exception as e:
        execution_time = time.time() - start_time
        logger.error(f"❌ {request.graph} graph failed after {execution_time:.2f}s: {str(e)}")
        logger.exception("Full traceback:")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Graph execution failed: {str(e)}",
        )

    execution_time = time.time() - start_time
    logger.info(
        "run-graph summary: graph=%s input_keys=%s success=%s time=%.2fs",
        request.graph,
        list(request.input.keys()),
        result.get("response_metadata", {}).get("success", False),
        execution_time,
    )
    return GraphResponse(success=True, graph=request.graph, data=result, error=None)


@app.get(
    "/api/dogs/discover",
    response_model=List[Candidate],
    tags=["Matching"],
    dependencies=[Depends(require_token)],
)
async def discover(
    repository: Repo,
    dog_id: str,
    latitude: float,
    longitude: float,
    max_distance: Annotated[
        Optional[float], Query(ge=0, le=config.MAX_DISTANCE_LIMIT_KM)
    ] = None,
    age_range: Optional[AgeBand] = None,
    size: Optional[str] = None,
    vaccinated: bool = False,
    spayed_neutered: bool = False,
    no_allergies: bool = False,
    vet_clearance: bool = False,
) -> List[Candidate]:
    """
    Dogs the requester has not decided on yet, within max_distance km.

    max_distance defaults to the dog's own search radius.
    """
    filters = AttributeFilters(
        age_range=age_range,
        size=size,
        vaccinated=vaccinated,
        spayed_neutered=spayed_neutered,
        no_allergies=no_allergies,
        vet_clearance=vet_clearance,
    )
    return find_candidates(
        repository, dog_id, latitude, longitude, max_distance, filters
    )


@app.post(
    "/api/swipes",
    response_model=SwipeResult,
    tags=["Matching"],
    dependencies=[Depends(require_token)],
)
async def create_swipe(request: SwipeRequest, repository: Repo) -> SwipeResult:
    """Record a like/pass. The response includes the match on a mutual like."""
    result = swipe_tools.submit_swipe(
        repository, request.decider_dog_id, request.target_dog_id, request.is_like
    )
    logger.info(
        "swipe %s -> %s like=%s matched=%s",
        request.decider_dog_id,
        request.target_dog_id,
        request.is_like,
        result.match is not None,
    )
    return result


@app.get(
    "/api/dogs/{dog_id}/matches",
    response_model=List[MatchView],
    tags=["Matching"],
    dependencies=[Depends(require_token)],
)
async def get_matches(dog_id: str, repository: Repo) -> List[MatchView]:
    return swipe_tools.matches_with_dogs(repository, dog_id)


@app.delete(
    "/api/matches/{match_id}",
    response_model=Match,
    tags=["Matching"],
    dependencies=[Depends(require_token)],
)
async def delete_match(match_id: str, dog_id: str, repository: Repo) -> Match:
    """Unmatch. The pair will not be matched again."""
    return swipe_tools.unmatch(repository, match_id, dog_id)


@app.get(
    "/api/matches/{match_id}/messages",
    response_model=List[Message],
    tags=["Messages"],
    dependencies=[Depends(require_token)],
)
async def get_messages(match_id: str, repository: Repo) -> List[Message]:
    return swipe_tools.list_messages(repository, match_id)


@app.post(
    "/api/matches/{match_id}/messages",
    response_model=Message,
    status_code=status.HTTP_201_CREATED,
    tags=["Messages"],
    dependencies=[Depends(require_token)],
)
async def post_message(match_id: str, request: MessageRequest, repository: Repo) -> Message:
    return swipe_tools.send_message(repository, match_id, request.sender_id, request.content)


@app.post(
    "/api/dogs",
    response_model=Dog,
    status_code=status.HTTP_201_CREATED,
    tags=["Dogs"],
    dependencies=[Depends(require_token)],
)
async def create_dog(request: DogCreate, repository: Repo) -> Dog:
    return profile_tools.create_dog(repository, request)


@app.get(
    "/api/dogs/{dog_id}",
    response_model=Dog,
    tags=["Dogs"],
    dependencies=[Depends(require_token)],
)
async def get_dog(dog_id: str, repository: Repo) -> Dog:
    return profile_tools.get_dog(repository, dog_id)


@app.patch(
    "/api/dogs/{dog_id}",
    response_model=Dog,
    tags=["Dogs"],
    dependencies=[Depends(require_token)],
)
async def update_dog(dog_id: str, request: DogUpdate, repository: Repo) -> Dog:
    return profile_tools.update_dog(repository, dog_id, request)


@app.get(
    "/api/dogs/{dog_id}/medical",
    response_model=MedicalProfile,
    tags=["Dogs"],
    dependencies=[Depends(require_token)],
)
async def get_medical(dog_id: str, repository: Repo) -> MedicalProfile:
    return profile_tools.get_medical_profile(repository, dog_id)


@app.post(
    "/api/dogs/{dog_id}/medical",
    response_model=MedicalProfile,
    tags=["Dogs"],
    dependencies=[Depends(require_token)],
)
async def save_medical(
    dog_id: str, request: MedicalProfileInput, repository: Repo, response: Response
) -> MedicalProfile:
    """Create (201) or replace (200) the dog's medical profile."""
    profile, created = profile_tools.save_medical_profile(repository, dog_id, request)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return profile


@app.get(
    "/api/users/{user_id}/dogs",
    response_model=List[DogWithMedical],
    tags=["Dogs"],
    dependencies=[Depends(require_token)],
)
async def get_owner_dogs(user_id: str, repository: Repo) -> List[DogWithMedical]:
    return profile_tools.list_owner_dogs(repository, user_id)


@app.get("/", tags=["System"])
async def root() -> Dict[str, str]:
    """
    Root endpoint.

    Returns information about the API and how to access documentation.
    """
    return {
        "service": "PupMatch Matching Service",
        "version": "1.0.0",
        "docs": f"http://localhost:{config.PORT}/docs",
        "health": f"http://localhost:{config.PORT}/health",
    }


# ============================================================
# ERROR HANDLERS
# ============================================================

def _error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "status_code": status_code},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Handle HTTP exceptions with consistent error response format.
    """
    logger.error(f"HTTP Exception: {exc.status_code} - {exc.detail}")
    return _error_response(exc.status_code, exc.detail)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning(f"Validation error on {request.url.path}: {exc}")
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    logger.info(f"Not found on {request.url.path}: {exc}")
    return _error_response(status.HTTP_404_NOT_FOUND, str(exc))


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    logger.warning(f"Permission denied on {request.url.path}: {exc}")
    return _error_response(status.HTTP_403_FORBIDDEN, str(exc))


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    logger.warning(f"Conflict on {request.url.path}: {exc}")
    return _error_response(status.HTTP_409_CONFLICT, str(exc))


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage error on {request.url.path}: {exc}")
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "Storage unavailable")


@app.exception_handler(GraphExecutionError)
async def graph_error_handler(request: Request, exc: GraphExecutionError):
    logger.error(f"Graph error on {request.url.path}: {exc}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Graph execution failed")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Handle unexpected exceptions.

    Never returns the exception message to the client; use logging instead.
    """
    logger.error(f"Unhandled exception: {str(exc)}")
    logger.exception("Full traceback:")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# ============================================================
# STARTUP EVENTS
# ============================================================

@app.on_event("startup")
async def startup_event():
    """
    Run when the application starts.

    Configuration is already validated above (in module-level code),
    but we log it again here for visibility.
    """
    logger.info("=" * 60)
    logger.info("🚀 PupMatch Matching Service Starting Up")
    logger.info("=" * 60)
    logger.info(f"Storage Backend: {config.STORAGE_BACKEND}")
    logger.info(f"Debug Mode: {config.DEBUG}")
    logger.info(f"Default Radius: {config.DEFAULT_MAX_DISTANCE_KM} km")
    logger.info(f"Max Candidates: {config.MAX_CANDIDATES}")
    logger.info("=" * 60)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("🛑 PupMatch Matching Service Shutting Down")


# ============================================================
# ENTRY POINT
# ============================================================

if __name__ == "__main__":
    """
    Run with: python -m uvicorn pupmatch.server:app --reload
    """
    import uvicorn
    uvicorn.run(
        app,
        host=config.HOST,
        port=config.PORT,
        log_level="info" if not config.DEBUG else "debug"
    )
