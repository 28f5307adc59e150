from gomoku_logic import Board, Player


def color_text(text, color_code):
    return f"\033[{color_code}m{text}\033[0m"


def debug_text(text):
    return f"{color_text('DEBUG', '31')} {text}"


def info_text(text):
    return f"{color_text('INFO', '32')}  {text}"


def get_stone_unicode(player):
    stone_unicode = {Player.BLACK: '●', Player.WHITE: '○'}
    return stone_unicode[player]


def render_board_text(board: Board) -> str:
    """Console rendering with row/column indices and the last move bracketed."""
    last = board.last_move
    lines = ["    " + "".join(f"{col:3d}" for col in range(board.size))]
    for x in range(board.size):
        row = []
        for y in range(board.size):
            cell = board.cells[x][y]
            glyph = '·' if cell is None else get_stone_unicode(cell)
            if last is not None and (last.x, last.y) == (x, y):
                row.append(f"[{glyph}]")
            else:
                row.append(f" {glyph} ")
        lines.append(f"{x:3d} " + "".join(row))
    return "\n".join(lines)


def center_on_screen(window):
    from PySide6.QtWidgets import QApplication

    screen = QApplication.primaryScreen()
    screen_geometry = screen.geometry()
    window_size = window.size()
    x = (screen_geometry.width() - window_size.width()) // 2 + screen_geometry.left()
    y = (screen_geometry.height() - window_size.height()) // 2 + screen_geometry.top()
    window.move(x, y)
