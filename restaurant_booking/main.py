"""
FastAPI Application Entry Point

Restaurant Booking API - registration/login, restaurant catalog and
reservation management for the mobile client.

Endpoints:
    - POST /api/auth/register, POST /api/auth/login: Accounts and tokens
    - GET /api/restaurants: Search the catalog
    - GET /api/restaurants/{id}: Restaurant details
    - GET /api/restaurants/meta/cuisines|locations: Filter values
    - POST /api/reservations: Book a table
    - GET /api/user/reservations: The caller's reservations
    - GET|PUT|DELETE /api/reservations/{id}: Read, update, cancel
    - GET /api/health: System health check
"""

import logging
from datetime import datetime
from typing import Any, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from restaurant_booking.core.config import get_settings, setup_logging
from restaurant_booking.core.exceptions import DomainError
from restaurant_booking.dependencies import (
    get_auth_service,
    get_catalog_service,
    get_current_user,
    get_reservation_service,
    get_storage,
)
from restaurant_booking.schemas import (
    ApiResponse,
    AuthData,
    CuisineListData,
    ErrorResponse,
    FieldError,
    HealthResponse,
    LocationListData,
    LoginRequest,
    RegisterRequest,
    ReservationCreate,
    ReservationData,
    ReservationListData,
    ReservationUpdate,
    RestaurantData,
    RestaurantListData,
)
from restaurant_booking.services import (
    AuthService,
    ReservationService,
    RestaurantCatalogService,
)
from restaurant_booking.services.storage import (
    BaseStorage,
    PageRequest,
    RestaurantFilter,
    UserRecord,
    build_storage,
)

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    problems = settings.validate_production_config()
    if problems:
        logger.warning(f"⚠️ Unsafe production config: {problems}")

    app.state.storage = await build_storage(settings)

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await app.state.storage.close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Restaurant reservation API: accounts, restaurant catalog search "
        "and reservation management."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

AUTH_ERRORS = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
}


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/api/health",
    }


@app.get(
    "/api/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    storage: BaseStorage = Depends(get_storage),
) -> HealthResponse:
    """Verify the storage backend is reachable."""
    healthy = await storage.health_check()
    if not healthy:
        logger.error(f"Storage health check failed ({storage.provider_name})")

    return HealthResponse(
        status="OK" if healthy else "degraded",
        storage=storage.provider_name,
        timestamp=datetime.now(),
    )


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@app.post(
    "/api/auth/register",
    response_model=ApiResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Auth"],
    summary="Register",
)
async def register(
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> ApiResponse[AuthData]:
    """Create an account and return it with an access token."""
    user, token = await auth.register(body.name, body.email, body.password)
    return ApiResponse(
        message="User registered successfully",
        data=AuthData(user=user.to_public_dict(), token=token),
    )


@app.post(
    "/api/auth/login",
    response_model=ApiResponse[AuthData],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    tags=["Auth"],
    summary="Login",
)
async def login(
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> ApiResponse[AuthData]:
    """Exchange email and password for an access token."""
    user, token = await auth.login(body.email, body.password)
    return ApiResponse(
        message="Login successful",
        data=AuthData(user=user.to_public_dict(), token=token),
    )


# =============================================================================
# RESTAURANT ENDPOINTS
# =============================================================================

@app.get(
    "/api/restaurants",
    response_model=ApiResponse[RestaurantListData],
    tags=["Restaurants"],
    summary="Search Restaurants",
)
async def list_restaurants(
    search: Optional[str] = Query(None, description="Matches name or location"),
    location: Optional[str] = Query(None),
    cuisine: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    catalog: RestaurantCatalogService = Depends(get_catalog_service),
) -> ApiResponse[RestaurantListData]:
    """Retrieve a filtered, paginated page of restaurants, best rated first."""
    result = await catalog.search(
        RestaurantFilter(text=search, location=location, cuisine=cuisine),
        PageRequest(page=page, page_size=limit),
    )
    return ApiResponse(
        data=RestaurantListData(
            restaurants=[r.to_dict() for r in result.items],
            pagination=result.pagination(),
        )
    )


@app.get(
    "/api/restaurants/meta/cuisines",
    response_model=ApiResponse[CuisineListData],
    tags=["Restaurants"],
)
async def list_cuisines(
    catalog: RestaurantCatalogService = Depends(get_catalog_service),
) -> ApiResponse[CuisineListData]:
    """Distinct cuisine types, for filter pickers."""
    return ApiResponse(data=CuisineListData(cuisines=await catalog.list_cuisines()))


@app.get(
    "/api/restaurants/meta/locations",
    response_model=ApiResponse[LocationListData],
    tags=["Restaurants"],
)
async def list_locations(
    catalog: RestaurantCatalogService = Depends(get_catalog_service),
) -> ApiResponse[LocationListData]:
    """Distinct locations, for filter pickers."""
    return ApiResponse(data=LocationListData(locations=await catalog.list_locations()))


@app.get(
    "/api/restaurants/{restaurant_id}",
    response_model=ApiResponse[RestaurantData],
    responses={404: {"model": ErrorResponse}},
    tags=["Restaurants"],
)
async def get_restaurant(
    restaurant_id: int,
    catalog: RestaurantCatalogService = Depends(get_catalog_service),
) -> ApiResponse[RestaurantData]:
    """Get a specific restaurant by ID."""
    restaurant = await catalog.get_by_id(restaurant_id)
    return ApiResponse(data=RestaurantData(restaurant=restaurant.to_dict()))


# =============================================================================
# RESERVATION ENDPOINTS
# =============================================================================

@app.post(
    "/api/reservations",
    response_model=ApiResponse[ReservationData],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, **AUTH_ERRORS},
    tags=["Reservations"],
    summary="Create Reservation",
)
async def create_reservation(
    body: ReservationCreate,
    user: UserRecord = Depends(get_current_user),
    reservations: ReservationService = Depends(get_reservation_service),
) -> ApiResponse[ReservationData]:
    """Book a table for the authenticated user."""
    reservation = await reservations.create(
        user_id=user.id,
        restaurant_id=body.restaurant_id,
        reservation_date=body.date,
        reservation_time=body.time,
        people_count=body.people_count,
        special_requests=body.special_requests,
    )
    return ApiResponse(
        message="Reservation created successfully",
        data=ReservationData(reservation=reservation.to_dict()),
    )


@app.get(
    "/api/user/reservations",
    response_model=ApiResponse[ReservationListData],
    responses=AUTH_ERRORS,
    tags=["Reservations"],
    summary="List My Reservations",
)
async def list_user_reservations(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    user: UserRecord = Depends(get_current_user),
    reservations: ReservationService = Depends(get_reservation_service),
) -> ApiResponse[ReservationListData]:
    """
    Retrieve the caller's reservations, most recent first.

    An unrecognised ``status`` is ignored rather than rejected.
    """
    result = await reservations.list_for_user(
        user.id, status_filter, PageRequest(page=page, page_size=limit)
    )
    return ApiResponse(
        data=ReservationListData(
            reservations=[r.to_dict() for r in result.items],
            pagination=result.pagination(),
        )
    )


@app.get(
    "/api/reservations/{reservation_id}",
    response_model=ApiResponse[ReservationData],
    responses={404: {"model": ErrorResponse}, **AUTH_ERRORS},
    tags=["Reservations"],
)
async def get_reservation(
    reservation_id: int,
    user: UserRecord = Depends(get_current_user),
    reservations: ReservationService = Depends(get_reservation_service),
) -> ApiResponse[ReservationData]:
    """Get one of the caller's reservations."""
    reservation = await reservations.get_owned(user.id, reservation_id)
    return ApiResponse(data=ReservationData(reservation=reservation.to_dict()))


@app.put(
    "/api/reservations/{reservation_id}",
    response_model=ApiResponse[ReservationData],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, **AUTH_ERRORS},
    tags=["Reservations"],
)
async def update_reservation(
    reservation_id: int,
    body: ReservationUpdate,
    user: UserRecord = Depends(get_current_user),
    reservations: ReservationService = Depends(get_reservation_service),
) -> ApiResponse[ReservationData]:
    """Change date, time, party size or special requests."""
    reservation = await reservations.update(user.id, reservation_id, body.to_changes())
    return ApiResponse(
        message="Reservation updated successfully",
        data=ReservationData(reservation=reservation.to_dict()),
    )


@app.delete(
    "/api/reservations/{reservation_id}",
    response_model=ApiResponse[None],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, **AUTH_ERRORS},
    tags=["Reservations"],
)
async def cancel_reservation(
    reservation_id: int,
    user: UserRecord = Depends(get_current_user),
    reservations: ReservationService = Depends(get_reservation_service),
) -> ApiResponse[None]:
    """Cancel a reservation. The record is kept with status "cancelled"."""
    await reservations.cancel(user.id, reservation_id)
    return ApiResponse(message="Reservation cancelled successfully")


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def _error_response(
    status_code: int,
    message: str,
    errors: Optional[list[dict[str, Any]]] = None,
) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Business-rule failures raised by the services."""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return _error_response(exc.status_code, exc.message, exc.errors)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies, query strings and path parameters."""
    errors = [
        FieldError(
            field=".".join(str(part) for part in err["loc"] if part not in ("body", "query", "path")),
            message=err["msg"].removeprefix("Value error, "),
        ).model_dump()
        for err in exc.errors()
    ]
    logger.info(f"{request.method} {request.url.path} -> 400: validation failed")
    return _error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes, wrong methods and other framework-level errors."""
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        f"Internal server error: {exc}" if settings.debug else "Internal server error",
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "restaurant_booking.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
