# config.py
import os

# --- 难度预设 (name, rows, columns) ---
# key -> (display name, rows, columns)
DIFFICULTY_PRESETS = {
    "easy": ("Easy", 6, 7),
    "normal": ("Normal", 6, 9),
    "hard": ("Hard", 7, 8),
}
DEFAULT_DIFFICULTY = "easy"

# --- 规则 ---
WIN_LENGTH = 4
# Gravity flips each time the placed-piece count reaches a multiple of this
GRAVITY_FLIP_INTERVAL = 5

# --- 服务器 ---
HOST = "0.0.0.0"
PORT = 8000
SECRET_KEY = os.environ.get("GRAVITY4_SECRET_KEY", "dev_secret_key_change_me")
# 照片上传大小上限 (bytes)
MAX_PHOTO_BYTES = 2 * 1024 * 1024
