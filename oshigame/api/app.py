"""
FastAPI Application - REST API for a table-side client.

Endpoints:
    GET    /health                                      Health check
    POST   /api/v1/games                                Start a game
    GET    /api/v1/games                                List games
    GET    /api/v1/games/{id}                           Full game state
    DELETE /api/v1/games/{id}                           Drop a game
    POST   /api/v1/games/{id}/reward-card               Select a reward card
    POST   /api/v1/games/{id}/labor                     Roll dice and pay labor
    POST   /api/v1/games/{id}/decision                  Select rest / oshikatsu
    POST   /api/v1/games/{id}/reveal                    Reveal decisions
    POST   /api/v1/games/{id}/fanservice-cards          Draw fanservice cards
    POST   /api/v1/games/{id}/goods                     Purchase goods
    POST   /api/v1/games/{id}/kagebunshin               Create a kagebunshin
    POST   /api/v1/games/{id}/pieces/move               Place an otaku piece
    POST   /api/v1/games/{id}/fansa-time                Score fansa time
    POST   /api/v1/games/{id}/completion                Mark a player done
    POST   /api/v1/games/{id}/next-phase                Advance the phase
    POST   /api/v1/games/{id}/next-turn                 Advance the active player
    POST   /api/v1/games/{id}/end-round                 Close the round
    POST   /api/v1/games/{id}/end-game                  End the game
    GET    /api/v1/games/{id}/results                   Final ranking
    GET    /api/v1/history                             Recent games

Rule violations return 400 with the engine's error code.
Unknown sessions return 404. Malformed request bodies return 422 with
VALIDATION_ERROR.
"""

import logging
from pathlib import Path

from ..config import Settings, configure_logging

logger = logging.getLogger(__name__)


def create_app(service=None, settings=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Request
        from fastapi.exceptions import RequestValidationError
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService, file_stores
    from ..session import JsonFileGameHistory
    from .schemas import (
        CreateGameRequest,
        SelectRewardCardRequest,
        DecisionRequest,
        PurchaseGoodsRequest,
        KagebunshinRequest,
        MovePieceRequest,
        CompletionRequest,
        ActionResponse,
        GameStateResponse,
        FinalResultsResponse,
        ErrorResponse,
        SessionListResponse,
        HistoryResponse,
        HealthResponse,
        APIErrorCode,
    )
    from .. import __version__

    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Oshigame Test-Play API",
        description="Rules engine for oshikatsu board game test play.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if service is None and settings.is_production:
        service = APIService(
            store_factory=file_stores(settings.save_dir),
            history=JsonFileGameHistory(Path(settings.save_dir) / "history.json"),
            seed=settings.seed,
        )
    api_service = service or APIService(seed=settings.seed)

    # =========================================================================
    # Error helpers
    # =========================================================================

    def respond(response):
        """Pass models through; turn ErrorResponse into a JSON error."""
        if not isinstance(response, ErrorResponse):
            return response
        status_code = 404 if response.error_code == APIErrorCode.SESSION_NOT_FOUND.value else 400
        if status_code == 400:
            logger.info("Rejected: %s (%s)", response.error_code, response.error)
        return JSONResponse(status_code=status_code, content=response.model_dump())

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        body = ErrorResponse(
            error="Request body could not be used",
            error_code=APIErrorCode.VALIDATION_ERROR.value,
            details={"errors": [
                {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
                for err in exc.errors()
            ]},
        )
        return JSONResponse(status_code=422, content=body.model_dump())

    errors = {400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post("/api/v1/games", response_model=ActionResponse, responses=errors, tags=["Games"])
    async def create_game(request: CreateGameRequest):
        """Seat 1-4 players. The game starts in the setup phase of round 1."""
        return respond(api_service.create_game(request))

    @app.get("/api/v1/games", response_model=SessionListResponse, tags=["Games"])
    async def list_games():
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get("/api/v1/games/{session_id}", response_model=GameStateResponse, responses=errors, tags=["Games"])
    async def get_game(session_id: str):
        return respond(api_service.get_game_state(session_id))

    @app.delete("/api/v1/games/{session_id}", responses=errors, tags=["Games"])
    async def delete_game(session_id: str):
        if not api_service.delete_session(session_id):
            return respond(ErrorResponse(
                error=f"Session {session_id} not found",
                error_code=APIErrorCode.SESSION_NOT_FOUND.value,
            ))
        return {"deleted": session_id}

    @app.get("/api/v1/history", response_model=HistoryResponse, tags=["Games"])
    async def list_history():
        """Recent games with their status, newest first."""
        return api_service.list_history()

    @app.get("/api/v1/games/{session_id}/results", response_model=FinalResultsResponse, responses=errors, tags=["Games"])
    async def get_results(session_id: str):
        return respond(api_service.get_final_results(session_id))

    # =========================================================================
    # Player Operations
    # =========================================================================

    @app.post("/api/v1/games/{session_id}/reward-card", response_model=ActionResponse, responses=errors, tags=["Labor"])
    async def select_reward_card(session_id: str, request: SelectRewardCardRequest):
        return respond(api_service.select_reward_card(session_id, request))

    @app.post("/api/v1/games/{session_id}/decision", response_model=ActionResponse, responses=errors, tags=["Oshikatsu"])
    async def select_decision(session_id: str, request: DecisionRequest):
        return respond(api_service.select_oshikatsu_decision(session_id, request))

    @app.post("/api/v1/games/{session_id}/goods", response_model=ActionResponse, responses=errors, tags=["Oshikatsu"])
    async def purchase_goods(session_id: str, request: PurchaseGoodsRequest):
        return respond(api_service.purchase_goods(session_id, request))

    @app.post("/api/v1/games/{session_id}/kagebunshin", response_model=ActionResponse, responses=errors, tags=["Oshikatsu"])
    async def create_kagebunshin(session_id: str, request: KagebunshinRequest):
        """Clone a sashiire piece. The clone id is returned in `created_id`."""
        return respond(api_service.create_kagebunshin(session_id, request))

    @app.post("/api/v1/games/{session_id}/pieces/move", response_model=ActionResponse, responses=errors, tags=["Oshikatsu"])
    async def move_piece(session_id: str, request: MovePieceRequest):
        return respond(api_service.move_piece(session_id, request))

    @app.post("/api/v1/games/{session_id}/completion", response_model=ActionResponse, responses=errors, tags=["Turns"])
    async def set_completion(session_id: str, request: CompletionRequest):
        return respond(api_service.set_player_action_completed(session_id, request))

    # =========================================================================
    # Round Operations
    # =========================================================================

    @app.post("/api/v1/games/{session_id}/labor", response_model=ActionResponse, responses=errors, tags=["Labor"])
    async def roll_labor(session_id: str):
        return respond(api_service.roll_dice_and_process_labor(session_id))

    @app.post("/api/v1/games/{session_id}/reveal", response_model=ActionResponse, responses=errors, tags=["Oshikatsu"])
    async def reveal_decisions(session_id: str):
        return respond(api_service.reveal_oshikatsu_decisions(session_id))

    @app.post("/api/v1/games/{session_id}/fanservice-cards", response_model=ActionResponse, responses=errors, tags=["Oshikatsu"])
    async def draw_fanservice_cards(session_id: str):
        return respond(api_service.generate_fanservice_cards(session_id))

    @app.post("/api/v1/games/{session_id}/fansa-time", response_model=ActionResponse, responses=errors, tags=["Fansa"])
    async def process_fansa_time(session_id: str):
        return respond(api_service.process_fansa_time(session_id))

    @app.post("/api/v1/games/{session_id}/next-phase", response_model=ActionResponse, responses=errors, tags=["Turns"])
    async def next_phase(session_id: str):
        return respond(api_service.next_phase(session_id))

    @app.post("/api/v1/games/{session_id}/next-turn", response_model=ActionResponse, responses=errors, tags=["Turns"])
    async def next_turn(session_id: str):
        return respond(api_service.next_turn(session_id))

    @app.post("/api/v1/games/{session_id}/end-round", response_model=ActionResponse, responses=errors, tags=["Turns"])
    async def end_round(session_id: str):
        return respond(api_service.end_round(session_id))

    @app.post("/api/v1/games/{session_id}/end-game", response_model=ActionResponse, responses=errors, tags=["Turns"])
    async def end_game(session_id: str):
        return respond(api_service.end_game(session_id))

    # =========================================================================
    # System
    # =========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health():
        return HealthResponse(status="ok", service="oshigame", version=__version__)

    return app
