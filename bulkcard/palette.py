"""Card colour palette."""

BG = (27, 26, 22)           # #1b1a16
PANEL = (36, 34, 29)        # #24221d
BORDER = (42, 40, 35)       # #2a2823
TEXT = (234, 231, 223)      # #eae7df
MUTED = (143, 139, 134)     # #8f8b86
ACCENT = (19, 149, 114)     # #139572
WHITE = (255, 255, 255)
CYAN = (0, 255, 255)
MAGENTA = (255, 0, 255)
YELLOW = (255, 255, 0)
