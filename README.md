# seabattle

A console client for a networked game of sea battle (battleship). It connects
to a game server over TCP and lets you authorise with a login, chat with other
players, invite a ready player to a game, place your ships, and take turns
shooting at the enemy board. The game logic (boards, placement rules, game
state, message format) can also be used as a library without any network
connection.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Running the client

```
seabattle [HOST] [PORT] [--attempts N] [-v]
```

- `HOST` defaults to `127.0.1.1`, `PORT` to `50000`.
- `--attempts N` is how many times to try to connect (default 30, two seconds
  apart); after the last failure the client exits with status 1.
- `-v` / `--verbose` turns on debug logging.

Once connected, commands are typed on standard input, one per line:

```
login NAME        authorize on the server
users             refresh the list of users
chat NAME         open the chat with NAME (or 'all')
say CHAT TEXT     send a chat line
invite NAME       invite a ready user to a game
ready | notready  change readiness
place X Y         put a ship cell on your board
remove X Y        remove a ship cell from your board
generate          ask the server for a random placement
clear             clear your board
check             validate your placement
apply             submit your placement
shoot X Y         shoot at the enemy board
mark X Y          toggle a mark on the enemy board
leave             end the running game early
history           request the history of finished games
help              show this list
quit              leave the server
```

Coordinates run from 0 to 9. Boards are printed as rows of cell values
(0 empty, 1 ship, 2 miss, 3 damaged, 4 killed, 5 mark). Invitations and
other yes/no questions are answered with `y` or `n` on the next input line.

## Rules of placement

The board is 10 × 10. `Field.is_correct()` accepts a placement with

- 4 ships of length 1,
- 3 ships of length 2,
- 2 ships of length 3,
- 1 ship of length 4,

all straight, and no two ship cells touching at a corner. Ship cells that
touch along a side are counted as one ship, so ships placed side by side make
the placement incorrect.

## Using the library

```python
from seabattle.field import Field, CellDraw

field = Field()
field.generate()              # fills in a fixed valid placement
print(field.is_correct())     # True
print(field.draw_field_str())
print(field.get_cell(0, 0) is CellDraw.LIVE)
```

- `seabattle.field` — `Field`, the `CellDraw`, `CellState` and `Owner` enums,
  `field_draw_from_str()` and `format_field()`.
- `seabattle.model` — `Model` holds both boards, the logins, the game id and
  the `ModelState` of the game (placing ships, waiting for the opponent,
  making a shot, …).
- `seabattle.protocol` — builds and parses the `@`-terminated text messages
  the server speaks (`split_messages()`, `parse_users()`, `auth_message()`,
  `shot_message()`, …).
- `seabattle.history` — `parse_history()` turns a history update into
  `GameRecord` objects.
- `seabattle.session` — `Session` reacts to server messages and player
  actions and reports to a `Frontend`, whose methods a user interface
  overrides.
- `seabattle.controller` — `Controller` turns clicks at pixel positions into
  board edits and shots, and plays sound effects by name.
- `seabattle.sound` — `parse_wave()` reads the header of a PCM WAVE file;
  `Sound` streams its samples on a background thread to a sink callable.
- `seabattle.database` — `PlacementDatabase` stores ship placements in an
  SQLite `Fields` table and picks one at random.
- `seabattle.app` — `Client`, `ConsoleFrontend` and the `main()` entry point.

## What it does not do

- There is no game server here; the client needs one to talk to.
- There is no graphical window: boards are printed as text in the console.
- No sound is heard. `Controller` looks for `<name>.wav` files in a
  `sounds` directory (none are shipped), and `Sound` only hands the samples
  to a sink callable you supply; without one they are read and dropped.
- The console client does not use `PlacementDatabase`; it is there for
  callers that want to keep placements.