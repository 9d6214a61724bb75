"""Board geometry, image layout and fleet composition for the game."""

IMAGES_DIRECTORY_PATH = "images/"
SOUNDS_DIRECTORY_PATH = "/sounds/"

FIELD_WIDTH_DEFAULT = 10
FIELD_HEIGHT_DEFAULT = 10

FIELD_IMG_WIDTH_DEFAULT = 216
FIELD_IMG_HEIGHT_DEFAULT = 217

MYFIELD_IMG_X = 40
MYFIELD_IMG_Y = 127
MYFIELD_IMG_REL_X = MYFIELD_IMG_X
MYFIELD_IMG_REL_Y = 39

ENEMYFIELD_IMG_X = 322
ENEMYFIELD_IMG_Y = 127
ENEMYFIELD_IMG_REL_X = ENEMYFIELD_IMG_X
ENEMYFIELD_IMG_REL_Y = 39

SHIP_MAXLEN = 4

SHIP1_NUM = 4
SHIP2_NUM = 3
SHIP3_NUM = 2
SHIP4_NUM = 1

# Required number of ships for every ship length.
SHIP_COUNTS = {1: SHIP1_NUM, 2: SHIP2_NUM, 3: SHIP3_NUM, 4: SHIP4_NUM}