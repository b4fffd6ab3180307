# game_session.py
import logging
import threading

from game_logic import GravityConnectFourGame

logger = logging.getLogger(__name__)


class GameSession:
    """
    Owns the single live game.

    Starting a game replaces whatever was there before; clearing drops it.
    The handle itself is swapped under a lock so readers always see either
    the old game or the new one, never a half-built one.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._game = None

    @property
    def current(self):
        with self._lock:
            return self._game

    def start(self, player1_name, player2_name, difficulty, photo1="", photo2=""):
        # Raises InvalidDifficulty before the old game is touched
        game = GravityConnectFourGame(player1_name, player2_name, difficulty, photo1, photo2)
        photos = (bool(game.player1_photo), bool(game.player2_photo))
        with self._lock:
            replaced = self._game is not None
            self._game = game
        # Photos are opaque; only their presence is logged
        logger.info("Session: new %s game %r vs %r (photos: %s / %s)%s",
                    difficulty, player1_name, player2_name, *photos,
                    ", previous game discarded" if replaced else "")
        return game

    def clear(self):
        with self._lock:
            game, self._game = self._game, None
        if game is not None:
            logger.info("Session: game discarded after %d turns", game.turn_count)
        return game
