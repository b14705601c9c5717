# core.py
# Stateless grid logic for the sliding-tile game. GridEngine (engine.py) builds on these.

from enum import Enum
from typing import List, Optional, Tuple, Union
import random

Board = List[List[int]]
Cell = Tuple[int, int]

SPAWN_FOUR_PROBABILITY = 0.1
DEFAULT_BOARD_SIZE = 4
MIN_BOARD_SIZE = 2
MAX_BOARD_SIZE = 16
DEFAULT_WIN_TILE = 2048


class GameProgressState(Enum):
    """Represents the current progress state of the game."""
    IN_PROGRESS = 1
    GAME_OVER = 2  # Lost
    GAME_WON = 3


class DIRECTION(Enum):
    """Represents the possible move directions."""
    UP = 1
    DOWN = 2
    LEFT = 3
    RIGHT = 4

    @classmethod
    def parse(cls, value: Union["DIRECTION", str]) -> "DIRECTION":
        """
        Converts a member or a case-insensitive member name into a DIRECTION.
        Raises:
            ValueError: If the value does not name one of the four directions.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            member = cls.__members__.get(value.strip().upper())
            if member is not None:
                return member
        raise ValueError(f"Invalid direction: {value!r}. Must be one of UP, DOWN, LEFT, RIGHT.")


def is_power_of_two(value: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0 and value & (value - 1) == 0

# --- Validation ---
# Shared by the engine, the saved-game format and the HTTP request models.

def validate_board_size(size: int) -> int:
    if not isinstance(size, int) or isinstance(size, bool) or not MIN_BOARD_SIZE <= size <= MAX_BOARD_SIZE:
        raise ValueError(f"Board size must be an integer between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}.")
    return size

def validate_win_tile(value: int) -> int:
    if not is_power_of_two(value) or value < 4:
        raise ValueError("win_tile must be a power of two of at least 4.")
    return value

def validate_tiles(board: Board) -> Board:
    """
    Checks that a board can be played.
    Raises:
        ValueError: If the board is not square, has an unsupported size, holds a value that
                    is neither 0 nor a power of two of at least 2, or has no tile at all.
    """
    validate_board_size(get_board_size(board))
    has_tile = False
    for row in board:
        for value in row:
            if value == 0:
                continue
            if value < 2 or not is_power_of_two(value):
                raise ValueError(f"Tile value {value} is not a power of two.")
            has_tile = True
    if not has_tile:
        raise ValueError("Board must hold at least one tile.")
    return board

# --- Board Helper Functions ---

def get_board_size(board: Board) -> int:
    """
    Gets the size (N) of an N x N board.
    Args:
        board (Board): The game board.
    Returns:
        int: The dimension of the board.
    Raises:
        ValueError: If the board is not square or empty.
    """
    if not board or not all(len(row) == len(board) for row in board):
        raise ValueError("Board must be a non-empty square matrix.")
    return len(board)

def new_board(size: int = DEFAULT_BOARD_SIZE) -> Board:
    """
    Creates an empty N x N board.
    Raises:
        ValueError: If size is not an integer between MIN_BOARD_SIZE and MAX_BOARD_SIZE.
    """
    validate_board_size(size)
    return [[0] * size for _ in range(size)]

def copy_board(board: Board) -> Board:
    return [list(row) for row in board]

def get_empty_cells(board: Board) -> List[Cell]:
    """
    Get coordinates of empty (0-value) cells in the given board.
    Args:
        board (Board): The board to check.
    Returns:
        List[Cell]: List of (row, col) tuples for empty cells, row-major.
    """
    n = get_board_size(board)
    return [(row, col) for row in range(n) for col in range(n) if board[row][col] == 0]

def max_tile(board: Board) -> int:
    """Largest tile value on the board, 0 if the board is empty."""
    return max((value for row in board for value in row), default=0)

def place_random_tile(board: Board, rng: Optional[random.Random] = None) -> Optional[Tuple[int, int, int]]:
    """
    Places a new tile (90% chance of 2, 10% chance of 4) on an empty cell, in place.
    Args:
        board (Board): The board to modify.
        rng: Source of randomness; anything with choice() and random(). Defaults to the random module.
    Returns:
        Optional[Tuple[int, int, int]]: (row, col, value) of the new tile, or None if the board is full.
    """
    rng = rng or random
    empty_cells = get_empty_cells(board)
    if not empty_cells:
        return None

    row, col = rng.choice(empty_cells)
    value = 4 if rng.random() < SPAWN_FOUR_PROBABILITY else 2
    board[row][col] = value
    return row, col, value

# --- Line Manipulation (Core Move Logic) ---

def slide_line(line: List[int]) -> Tuple[List[int], int, bool]:
    """
    Slides a single line toward index 0, merging equal neighbours once.

    The scan starts at the leading edge, so a run of three equal tiles merges the
    first two and leaves the third alone, and a freshly merged tile never merges
    again in the same move.
    Args:
        line (List[int]): The line to process, leading edge first.
    Returns:
        Tuple[List[int], int, bool]: The processed line, score increase, and if the line changed.
    """
    tiles = [value for value in line if value != 0]
    merged: List[int] = []
    score_increase = 0
    read_idx = 0

    while read_idx < len(tiles):
        current_val = tiles[read_idx]
        if read_idx + 1 < len(tiles) and current_val == tiles[read_idx + 1]:
            merged_value = current_val * 2
            merged.append(merged_value)
            score_increase += merged_value
            read_idx += 2  # Skip current and next tile (which was merged)
        else:
            merged.append(current_val)
            read_idx += 1

    merged += [0] * (len(line) - len(merged))
    changed = any(old != new for old, new in zip(line, merged))
    return merged, score_increase, changed

# --- Board Transformations ---

def transpose_board(board: Board) -> Board:
    """
    Transposes a given board (swaps rows and columns).
    Args:
        board (Board): The board to transpose.
    Returns:
        Board: A new transposed board.
    """
    return [list(column) for column in zip(*board)]

def reverse_rows(board: Board) -> Board:
    """Returns a new board with every row reversed."""
    return [row[::-1] for row in board]

def _to_leading_edge(board: Board, direction: DIRECTION) -> Board:
    # Reorients the board so every line reads from its leading edge at index 0.
    if direction == DIRECTION.LEFT:
        return copy_board(board)
    if direction == DIRECTION.RIGHT:
        return reverse_rows(board)
    if direction == DIRECTION.UP:
        return transpose_board(board)
    if direction == DIRECTION.DOWN:
        return reverse_rows(transpose_board(board))
    raise ValueError("Invalid direction specified for process_move.")

def _from_leading_edge(lines: Board, direction: DIRECTION) -> Board:
    if direction == DIRECTION.LEFT:
        return lines
    if direction == DIRECTION.RIGHT:
        return reverse_rows(lines)
    if direction == DIRECTION.UP:
        return transpose_board(lines)
    return transpose_board(reverse_rows(lines))

# --- Core Game Move Processing ---

def process_move(board: Board, direction: Union[DIRECTION, str]) -> Tuple[Board, int, bool]:
    """
    Processes a move in the specified direction on a copy of the board.
    Args:
        board (Board): The current game board.
        direction (DIRECTION): The direction to move; a direction name is also accepted.
    Returns:
        Tuple[Board, int, bool]:
            - The new board state after the move.
            - The score gained from this move.
            - A boolean indicating if the board changed as a result of the move.
    Raises:
        ValueError: If an invalid direction or a malformed board is given.
    """
    direction = DIRECTION.parse(direction)
    get_board_size(board)

    processed_lines = []
    score_gained = 0
    move_changed_board = False
    for line in _to_leading_edge(board, direction):
        new_line, line_score, line_changed = slide_line(line)
        processed_lines.append(new_line)
        score_gained += line_score
        move_changed_board = move_changed_board or line_changed

    return _from_leading_edge(processed_lines, direction), score_gained, move_changed_board

# --- Game State Checks ---

def check_for_win(board: Board, win_tile: int = DEFAULT_WIN_TILE) -> bool:
    """
    Check if the game is won (a tile with win_tile value exists).
    Args:
        board (Board): The game board.
        win_tile (int): The tile value that signifies a win. Default is 2048.
    Returns:
        bool: True if the game is won, False otherwise.
    """
    return any(value == win_tile for row in board for value in row)

def is_move_possible_in_direction(board: Board, direction: DIRECTION) -> bool:
    """
    Check if any tile can move or merge in the given specific direction.
    Args:
        board (Board): The game board.
        direction (DIRECTION): The direction to check.
    Returns:
       bool: True if at least one tile can move or merge in that direction, False otherwise.
    """
    offsets = {
        DIRECTION.UP: (-1, 0),
        DIRECTION.DOWN: (1, 0),
        DIRECTION.LEFT: (0, -1),
        DIRECTION.RIGHT: (0, 1),
    }
    dr, dc = offsets[DIRECTION.parse(direction)]
    n = get_board_size(board)
    for r_idx in range(n):
        for c_idx in range(n):
            if board[r_idx][c_idx] == 0:
                continue  # Only non-empty tiles can initiate a move
            tr, tc = r_idx + dr, c_idx + dc
            if 0 <= tr < n and 0 <= tc < n and board[tr][tc] in (0, board[r_idx][c_idx]):
                return True
    return False

def is_any_move_possible(board: Board) -> bool:
    """Checks if any move is possible in any direction on the board."""
    return any(is_move_possible_in_direction(board, direction) for direction in DIRECTION)

def is_lost(board: Board) -> bool:
    """
    A board is lost when it has no empty cell and no move in any direction.
    On a full board a move is only possible through an adjacent equal pair.
    """
    return not get_empty_cells(board) and not is_any_move_possible(board)

def determine_game_status(board: Board, win_tile: int = DEFAULT_WIN_TILE) -> GameProgressState:
    """
    Determines the current progress state of the game based on the board.

    A lost board is reported as GAME_OVER even when it also holds the win tile,
    since no further move can be played on it.
    Args:
        board (Board): The current game board.
        win_tile (int): The tile value that signifies a win. Default is 2048.
    Returns:
        GameProgressState: The current state (IN_PROGRESS, GAME_WON, GAME_OVER).
    """
    if is_lost(board):
        return GameProgressState.GAME_OVER
    if check_for_win(board, win_tile):
        return GameProgressState.GAME_WON
    return GameProgressState.IN_PROGRESS
