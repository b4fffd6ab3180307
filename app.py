# app.py
import base64
import logging
from urllib.parse import urlencode

from flask import Flask, jsonify, redirect, render_template, request, url_for
from flask_socketio import SocketIO, emit

from config import DEFAULT_DIFFICULTY, HOST, MAX_PHOTO_BYTES, PORT, SECRET_KEY
from game_logic import DIFFICULTIES, InvalidDifficulty, MoveRejected
from game_session import GameSession

logger = logging.getLogger(__name__)

# --- Flask & SocketIO App Initialization ---
app = Flask(__name__)
app.config['SECRET_KEY'] = SECRET_KEY
socketio = SocketIO(app, async_mode='threading')

game_session = GameSession()

# --- Helper Functions ---

def get_game_status(game):
    if game.winner:
        return f"{game.player_name(game.winner)} wins!"
    if game.is_draw:
        return "It's a draw!"
    return f"{game.player_name(game.current_player)}'s turn"

def game_state(game, last_move=None):
    state = game.snapshot()
    state['status'] = state['message'] = get_game_status(game)
    if last_move:
        state['lastRow'], state['lastCol'] = last_move
    return state

def parse_column(value):
    # Anything that isn't an integer becomes an out-of-range column
    if isinstance(value, dict):
        value = value.get('col')
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value)
    return -1

def photo_to_data_uri(storage):
    if not storage or not storage.filename:
        return ""
    data = storage.read(MAX_PHOTO_BYTES + 1)
    if len(data) > MAX_PHOTO_BYTES:
        raise ValueError("Photo is too large")
    mimetype = storage.mimetype or "application/octet-stream"
    return f"data:{mimetype};base64,{base64.b64encode(data).decode('ascii')}"

def emit_game_update(last_move=None):
    if (game := game_session.current) is None:
        emit('game_update', {'gameOver': True, 'board': None, 'status': 'No game in progress'})
        return
    emit('game_update', game_state(game, last_move))

# --- Socket.IO Event Handlers ---

@socketio.on('connect')
def handle_connect():
    logger.info("Client connected: %s", request.sid)
    emit_game_update()

@socketio.on('disconnect')
def handle_disconnect():
    logger.info("Client disconnected: %s", request.sid)

@socketio.on('make_move')
def handle_make_move(data):
    if (game := game_session.current) is None:
        emit('move_rejected', {'error': 'No game in progress'})
        return
    col = parse_column(data)
    try:
        last_move = game.make_move(col)
    except MoveRejected as e:
        logger.info("Session %s: rejected move %r: %s", request.sid, col, e)
        emit('move_rejected', {'error': str(e)})
        return
    emit_game_update(last_move)

@socketio.on('get_game_state')
def handle_get_game_state():
    emit_game_update()

# --- Flask Routes ---

@app.route('/')
def index():
    return render_template('splash.html')

@app.route('/menu', methods=['GET', 'POST'])
def menu():
    if request.method == 'GET':
        return render_template('index.html', difficulties=DIFFICULTIES, default=DEFAULT_DIFFICULTY)

    player1, player2 = request.form.get('player1', ''), request.form.get('player2', '')
    difficulty = request.form.get('difficulty', '')
    if not player1 or not player2 or difficulty not in DIFFICULTIES:
        return redirect(url_for('menu'))
    query = urlencode({'player1': player1, 'player2': player2, 'difficulty': difficulty})
    return redirect(f"{url_for('photo')}?{query}")

@app.route('/photo')
def photo():
    return render_template('photo.html', player1=request.args.get('player1', ''),
                           player2=request.args.get('player2', ''),
                           difficulty=request.args.get('difficulty', ''))

@app.route('/create-game', methods=['POST'])
def create_game():
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify(error="Invalid JSON body"), 400
        photo1, photo2 = data.get('photo1') or "", data.get('photo2') or ""
        if not isinstance(photo1, str) or not isinstance(photo2, str):
            return jsonify(error="Photos must be strings"), 400
    else:
        data = request.form
        try:
            photo1 = photo_to_data_uri(request.files.get('photo1'))
            photo2 = photo_to_data_uri(request.files.get('photo2'))
        except ValueError as e:
            return jsonify(error=str(e)), 400

    player1, player2 = data.get('player1') or "", data.get('player2') or ""
    difficulty = data.get('difficulty') or ""
    if not player1 or not player2 or not difficulty:
        logger.info("Create game: missing parameters")
        return jsonify(error="Missing parameters"), 400
    try:
        game_session.start(player1, player2, difficulty, photo1, photo2)
    except InvalidDifficulty as e:
        return jsonify(error=str(e)), 400

    if request.is_json:
        return jsonify(status="ok")
    return redirect(url_for('game_page'))

@app.route('/game')
def game_page():
    if (game := game_session.current) is None:
        return redirect(url_for('menu'))
    return render_template('game.html', game=game, state=game_state(game))

@app.route('/state')
def state():
    if (game := game_session.current) is None:
        return jsonify(error="No game in progress"), 404
    return jsonify(game_state(game))

@app.route('/play', methods=['POST'])
def play():
    if (game := game_session.current) is None:
        return redirect(url_for('menu'))

    if request.is_json:
        col = parse_column(request.get_json(silent=True))
        try:
            last_move = game.make_move(col)
        except MoveRejected as e:
            return jsonify(error=str(e)), 400
        return jsonify(game_state(game, last_move))

    col = parse_column(request.form.get('column'))
    _, _, ok = game.play_move(col)
    if not ok:
        return redirect(url_for('game_page'))
    if game.winner:
        return redirect(url_for('win'))
    if game.is_draw:
        return redirect(url_for('draw'))
    return redirect(url_for('game_page'))

@app.route('/win')
def win():
    if (game := game_session.current) is None:
        return redirect(url_for('menu'))
    return render_template('win.html', game=game, name=game.player_name(game.winner),
                           photo=game.player_photo(game.winner))

@app.route('/draw')
def draw():
    if (game := game_session.current) is None:
        return redirect(url_for('menu'))
    return render_template('draw.html', game=game)

@app.route('/restart', methods=['GET', 'POST'])
def restart():
    game_session.clear()
    return redirect(url_for('menu'))

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.info("Starting Gravity Four server on http://127.0.0.1:%d", PORT)
    socketio.run(app, debug=True, host=HOST, port=PORT, allow_unsafe_werkzeug=True)
