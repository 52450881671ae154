"""
Grandmaster Chess package.

Components:
- controller: game session state machine (selection, moves, undo/reset, captures, AI move orchestration)
- position/move_validator/pieces: immutable game state over python-chess, move spec parsing, piece kinds
- advisor/prompting: AI move suggestions over an OpenAI-compatible endpoint with a JSON response schema
- render/cli/server: terminal front end and Flask JSON API
"""
# Package exports are intentionally minimal; import modules directly as needed.
