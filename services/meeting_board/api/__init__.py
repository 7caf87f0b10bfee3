from services.meeting_board.api.board import router as board_router  # noqa: F401
