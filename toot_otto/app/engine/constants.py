# --- Board Dimensions ---
DEFAULT_ROWS = 6
DEFAULT_COLS = 7
# Fixed storage capacity of a board
MAX_CELLS = 80
WIN_LENGTH = 4

# --- Search ---
DEFAULT_AI_DEPTH = 3
# Each ply branches over chip type and column
MAX_AI_DEPTH = 6

# --- Cell Values ---
EMPTY = 0
T_VALUE = 1
O_VALUE = -1
PLAYER_ONE_VALUE = 1
PLAYER_TWO_VALUE = -1

# --- Patterns ---
TOOT = (T_VALUE, O_VALUE, O_VALUE, T_VALUE)  # Player one
OTTO = (O_VALUE, T_VALUE, T_VALUE, O_VALUE)  # Player two / AI

# Scan order: right, down, down-right, up-right (row 0 is the top)
DIRECTIONS = ((0, 1), (1, 0), (1, 1), (-1, 1))
DIRECTION_NAMES = ("right", "down", "down-right", "up-right")

# --- Scoring System ---
# Terminal score at depth d: +/-(WIN_SCORE - d*d)
WIN_SCORE = 999999
# Larger than any reachable score
INFINITY = 100000000007
WIN_SIGNAL = 4

# --- Display ---
DRAW_LABEL = "Draw"
COMPUTER_NAME = "Computer"
CHIP_SYMBOLS = {EMPTY: "_", T_VALUE: "T", O_VALUE: "O"}
MOVER_SYMBOLS = {EMPTY: "_", PLAYER_ONE_VALUE: "R", PLAYER_TWO_VALUE: "Y"}
