"""Sea battle game client: boards, game model, server protocol, session handling and console front end."""

__version__ = "0.1.0"