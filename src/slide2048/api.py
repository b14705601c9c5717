import logging
import random
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, field_validator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from . import core
from .config import GameSettings, resolve_win_target, settings_from_env
from .models import GameSnapshot, SavedGame
from .session import SessionRegistry

logger = logging.getLogger(__name__)

RATE_LIMIT = "100/minute"

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="2048 Game API",
    description="Play sliding-tile games over HTTP. "\
                "Each game lives in a server-side session addressed by its game_id.",
    version="1.0.0"
)
app.state.limiter = limiter
app.state.sessions = SessionRegistry()
app.state.rng = random.Random()
app.state.defaults = settings_from_env()
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- Pydantic Models for API requests and responses ---

class NewGameRequest(BaseModel):
    """Settings for creating a new game. Omitted fields use the server defaults."""
    size: Optional[int] = Field(
        default=None,
        ge=core.MIN_BOARD_SIZE,
        le=core.MAX_BOARD_SIZE,
        description="Size of the N x N game board (e.g., 4 for a 4x4 board)."
    )
    win_tile: Optional[int] = Field(
        default=None,
        gt=0,
        description="The tile value to achieve for winning the game (e.g., 2048)."
    )
    difficulty: Optional[str] = Field(
        default=None,
        description="easy, medium, hard or classic; ignored when win_tile is given."
    )

class SessionStateData(GameSnapshot):
    """Represents the complete state of a game session."""
    game_id: str = Field(..., description="Identifier of the game session.")

class MoveData(BaseModel):
    direction: str = Field(..., description="Direction of the move (UP, DOWN, LEFT, RIGHT).")

class SessionMoveResponseData(SessionStateData):
    """Response after a move, including the new game state and move effectiveness."""
    move_was_effective: bool = Field(
        ...,
        description="True if the move resulted in a change to the board state, False otherwise."
    )
    score_delta: int = Field(..., ge=0, description="Points gained by this move.")
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g., if a move was invalid, game ended, or other info."
    )

class MoveRequestData(BaseModel):
    """Data required to make a stateless move."""
    board: List[List[int]] = Field(..., description="Current N x N game board state before the move.")
    score: int = Field(..., ge=0, description="Current score before the move.")
    direction: str = Field(..., description="Direction of the move (UP, DOWN, LEFT, RIGHT).")
    win_tile: int = Field(..., gt=0, description="The win condition tile for this game instance.")

    @field_validator("board")
    @classmethod
    def _valid_board(cls, board: List[List[int]]) -> List[List[int]]:
        return core.validate_tiles(board)

    @field_validator("win_tile")
    @classmethod
    def _valid_win_tile(cls, value: int) -> int:
        return core.validate_win_tile(value)

class MoveResponseData(BaseModel):
    """Stateless move result; the client keeps the state."""
    board: List[List[int]]
    score: int = Field(..., ge=0)
    progress: core.GameProgressState
    win_tile: int = Field(..., gt=0)
    board_size: int = Field(..., gt=0)
    move_was_effective: bool
    message: Optional[str] = None

# --- Helpers ---

def _session_state(game_id: str, snapshot: GameSnapshot) -> SessionStateData:
    return SessionStateData(game_id=game_id, **snapshot.model_dump())

def _get_session(game_id: str):
    try:
        return app.state.sessions.get(game_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown game: {game_id}")

def _settings_for(request_data: NewGameRequest) -> GameSettings:
    defaults: GameSettings = app.state.defaults
    if request_data.win_tile is not None:
        win_tile = request_data.win_tile
    elif request_data.difficulty is not None:
        win_tile = resolve_win_target(request_data.difficulty)
    else:
        win_tile = defaults.win_tile
    # GameSettings rejects a win_tile that is not a power of two
    return GameSettings(size=request_data.size or defaults.size, win_tile=win_tile)

# --- API Endpoints ---

@app.post("/game/new", response_model=SessionStateData, summary="Start a New 2048 Game")
@limiter.limit(RATE_LIMIT)
async def start_new_game(request: Request, settings: NewGameRequest):
    """
    Opens a new game session with two random tiles on the board.

    - **size**: Dimension of the N x N board (e.g., 4 for 4x4).
    - **win_tile**: Tile value to reach to win (e.g., 2048).
    - **difficulty**: Named win target, used when win_tile is omitted.
    """
    try:
        game_settings = _settings_for(settings)
        game_id, session = app.state.sessions.create(game_settings.size, game_settings.win_tile)
        return _session_state(game_id, session.snapshot())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Unexpected error in /game/new: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred during game creation.")


@app.post("/game/load", response_model=SessionStateData, summary="Resume a Saved Game")
@limiter.limit(RATE_LIMIT)
async def load_game(request: Request, saved: SavedGame):
    """Opens a new session from a previously saved game."""
    game_id, session = app.state.sessions.load(saved)
    return _session_state(game_id, session.snapshot())


@app.post("/game/move", response_model=MoveResponseData, summary="Make a Stateless Move")
@limiter.limit(RATE_LIMIT)
async def make_stateless_move(request: Request, request_data: MoveRequestData):
    """
    Processes a move on a client-held board.

    The API will:
    1. Attempt to process the move (slide tiles, merge).
    2. If the move changed the board, add a new random tile (2 or 4).
    3. Determine the new game status (IN_PROGRESS, GAME_WON, GAME_OVER).
    """
    try:
        board_size = core.get_board_size(request_data.board)
        direction = core.DIRECTION.parse(request_data.direction)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid move request: {str(e)}")

    final_board = core.copy_board(request_data.board)
    final_score = request_data.score
    message_for_client: Optional[str] = None

    try:
        board_after_slide, score_increase, move_was_effective = core.process_move(final_board, direction)
        if move_was_effective:
            final_board = board_after_slide
            final_score += score_increase
            core.place_random_tile(final_board, app.state.rng)
        else:
            message_for_client = "Move was not effective; board state unchanged by slide."

        current_progress = core.determine_game_status(final_board, request_data.win_tile)
        if current_progress == core.GameProgressState.GAME_WON:
            message_for_client = "Congratulations! You won!"
        elif current_progress == core.GameProgressState.GAME_OVER:
            message_for_client = "Game Over. No more valid moves."

        return MoveResponseData(
            board=final_board,
            score=final_score,
            progress=current_progress,
            win_tile=request_data.win_tile,
            board_size=board_size,
            move_was_effective=move_was_effective,
            message=message_for_client
        )
    except Exception as e:
        logger.error("Unexpected error in /game/move: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while processing the move.")


@app.get("/game/{game_id}", response_model=SessionStateData, summary="Get Game State")
@limiter.limit(RATE_LIMIT)
async def get_game(request: Request, game_id: str):
    session = _get_session(game_id)
    return _session_state(game_id, session.snapshot())


@app.post("/game/{game_id}/move", response_model=SessionMoveResponseData, summary="Make a Move in the Game")
@limiter.limit(RATE_LIMIT)
async def make_move(request: Request, game_id: str, move: MoveData):
    """
    Plays one turn in the given session.

    A move that changes nothing is reported with move_was_effective=False and
    leaves the game untouched. The win message appears only on the turn that
    first reaches the win tile; play may continue afterwards.
    """
    session = _get_session(game_id)
    try:
        result, snapshot = session.move(move.direction)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Error processing move: {str(e)}")
    except Exception as e:
        logger.error("Unexpected error in /game/%s/move: %s", game_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while processing the move.")

    message_for_client: Optional[str] = None
    if snapshot.progress == core.GameProgressState.GAME_OVER:
        message_for_client = "Game Over. No more valid moves."
    elif result.just_won:
        message_for_client = "Congratulations! You won!"
    elif not result.changed:
        message_for_client = "Move was not effective; board state unchanged by slide."

    return SessionMoveResponseData(
        game_id=game_id,
        **snapshot.model_dump(),
        move_was_effective=result.changed,
        score_delta=result.score_delta,
        message=message_for_client,
    )


@app.post("/game/{game_id}/restart", response_model=SessionStateData, summary="Restart a Game")
@limiter.limit(RATE_LIMIT)
async def restart_game(request: Request, game_id: str):
    """Starts over with the same board size and win tile."""
    session = _get_session(game_id)
    return _session_state(game_id, session.restart())


@app.get("/game/{game_id}/save", response_model=SavedGame, summary="Save a Game")
@limiter.limit(RATE_LIMIT)
async def save_game(request: Request, game_id: str):
    session = _get_session(game_id)
    return session.save()


@app.delete("/game/{game_id}", status_code=204, summary="End a Game Session")
@limiter.limit(RATE_LIMIT)
async def end_game(request: Request, game_id: str):
    _get_session(game_id)
    app.state.sessions.drop(game_id)
