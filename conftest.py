"""
Shared pytest fixtures.
"""

import pytest

from game_logic import GravityConnectFourGame


def play_all(game, columns):
    """Play a sequence of columns, failing loudly if any move is rejected."""
    placed = []
    for col in columns:
        row, col, ok = game.play_move(col)
        assert ok, f"move {len(placed) + 1} into column {col} was rejected"
        placed.append((row, col))
    return placed


@pytest.fixture
def play():
    return play_all


@pytest.fixture
def easy_game():
    return GravityConnectFourGame("Alice", "Bob", "easy")


@pytest.fixture
def normal_game():
    return GravityConnectFourGame("Alice", "Bob", "normal")


@pytest.fixture
def client():
    import app as app_module

    app_module.app.config['TESTING'] = True
    app_module.game_session.clear()
    with app_module.app.test_client() as c:
        yield c
    app_module.game_session.clear()


@pytest.fixture
def socket_client(client):
    import app as app_module

    sc = app_module.socketio.test_client(app_module.app, flask_test_client=client)
    yield sc
    if sc.is_connected():
        sc.disconnect()
