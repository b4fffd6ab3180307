# game_logic.py
import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType

import numpy as np

from config import DIFFICULTY_PRESETS, GRAVITY_FLIP_INTERVAL, WIN_LENGTH

logger = logging.getLogger(__name__)

EMPTY = 0
PLAYER_1 = 1
PLAYER_2 = 2
UNKNOWN_PLAYER = "?"


class GameError(Exception):
    """Base class for everything the engine refuses to do."""


class InvalidDifficulty(GameError, ValueError):
    pass


class MoveRejected(GameError, ValueError):
    """A move that left the game untouched."""


class InvalidColumn(MoveRejected):
    pass


class ColumnFull(MoveRejected):
    pass


class MoveAfterTerminal(MoveRejected):
    pass


@dataclass(frozen=True)
class Difficulty:
    key: str
    name: str
    rows: int
    columns: int


DIFFICULTIES = MappingProxyType({
    key: Difficulty(key, name, rows, cols)
    for key, (name, rows, cols) in DIFFICULTY_PRESETS.items()
})


def get_difficulty(key):
    try:
        return DIFFICULTIES[key]
    except (KeyError, TypeError):
        raise InvalidDifficulty(f"Unknown difficulty: {key!r}") from None


class GravityConnectFourGame:
    """
    Connect Four where gravity flips every GRAVITY_FLIP_INTERVAL placed pieces.

    Normal gravity stacks pieces from the last row upward; inverted gravity
    stacks them from row 0 downward. All mutation goes through make_move,
    which holds the instance lock for the whole placement.
    """

    def __init__(self, player1_name, player2_name, difficulty, photo1="", photo2=""):
        self.difficulty_preset = get_difficulty(difficulty)
        self.difficulty = difficulty
        self.rows = self.difficulty_preset.rows
        self.cols = self.difficulty_preset.columns
        self.board = np.zeros((self.rows, self.cols), dtype=int)
        self.current_player = PLAYER_1
        self.winner = 0
        self.is_draw = False
        self.turn_count = 0
        self.gravity_inverted = False
        self.player1_name = player1_name
        self.player2_name = player2_name
        self.player1_photo = photo1 or ""
        self.player2_photo = photo2 or ""
        self._lock = threading.Lock()

    @property
    def game_over(self):
        return self.winner != 0 or self.is_draw

    def get_valid_moves(self):
        if self.game_over:
            return []
        return [c for c in range(self.cols) if (self.board[:, c] == EMPTY).any()]

    def get_next_open_row(self, col):
        # 当前重力方向下第一个空位
        if self.gravity_inverted:
            scan = range(self.rows)
        else:
            scan = range(self.rows - 1, -1, -1)
        for r in scan:
            if self.board[r][col] == EMPTY:
                return r
        return None

    def make_move(self, col):
        """
        Drop the current player's piece into `col`.

        Returns (row, col) of the placed piece. Raises InvalidColumn,
        ColumnFull or MoveAfterTerminal without touching any state.
        """
        with self._lock:
            if self.game_over:
                raise MoveAfterTerminal("The game is already over")
            if isinstance(col, bool) or not isinstance(col, (int, np.integer)) \
                    or not 0 <= col < self.cols:
                raise InvalidColumn(f"Column {col!r} is outside 0..{self.cols - 1}")
            col = int(col)

            r = self.get_next_open_row(col)
            if r is None:
                raise ColumnFull(f"Column {col} is full")

            player = self.current_player
            self.board[r][col] = player
            self.turn_count += 1
            turn = self.turn_count
            flipped = False

            if self.check_win(r, col):
                self.winner = player
            elif self.check_draw():
                self.is_draw = True
            else:
                self.switch_player()
                if turn % GRAVITY_FLIP_INTERVAL == 0:
                    self.gravity_inverted = not self.gravity_inverted
                    flipped = True
            won, drawn, inverted = self.winner == player, self.is_draw, self.gravity_inverted

        logger.debug("Game: player %d played (%d, %d) on turn %d", player, r, col, turn)
        if won:
            logger.info("Game: player %d (%s) wins on turn %d", player, self.player_name(player), turn)
        elif drawn:
            logger.info("Game: draw after %d turns", turn)
        elif flipped:
            logger.info("Game: gravity %s after turn %d", "inverted" if inverted else "restored", turn)
        return r, col

    def play_move(self, col):
        try:
            r, col = self.make_move(col)
        except MoveRejected as e:
            logger.debug("Game: move rejected: %s", e)
            return -1, -1, False
        return r, col, True

    def switch_player(self):
        self.current_player = 3 - self.current_player

    def check_win(self, row, col):
        player = self.board[row][col]
        if player == EMPTY:
            return False

        directions = [(0, 1), (1, 0), (1, 1), (1, -1)]
        for dr, dc in directions:
            count = 1
            for sign in (1, -1):
                r, c = row + dr * sign, col + dc * sign
                while 0 <= r < self.rows and 0 <= c < self.cols and self.board[r][c] == player:
                    count += 1
                    r, c = r + dr * sign, c + dc * sign
            if count >= WIN_LENGTH:
                return True
        return False

    def check_draw(self):
        return not (self.board == EMPTY).any()

    def player_name(self, player_id):
        if player_id == PLAYER_1:
            return self.player1_name
        if player_id == PLAYER_2:
            return self.player2_name
        return UNKNOWN_PLAYER

    def player_photo(self, player_id):
        if player_id == PLAYER_1:
            return self.player1_photo
        if player_id == PLAYER_2:
            return self.player2_photo
        return ""

    def get_board(self):
        return self.board.tolist()

    def snapshot(self):
        with self._lock:
            return {
                'board': self.board.tolist(), 'rows': self.rows, 'cols': self.cols,
                'currentPlayer': self.current_player, 'gameOver': self.game_over,
                'winner': self.winner, 'isDraw': self.is_draw,
                'turnCount': self.turn_count, 'gravityInverted': self.gravity_inverted,
                'difficulty': self.difficulty,
                'player1Name': self.player1_name, 'player2Name': self.player2_name,
                'validMoves': self.get_valid_moves(),
            }
