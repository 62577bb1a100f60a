from __future__ import annotations
"""Interactive console input for the human side."""
from .game import SessionController


class UserOpponent:
    name = "Human"

    def read(self, controller: SessionController, prompt: str = "Your move (SAN or UCI, or quit/reset/hint/moves): ") -> str:
        """Show the board and return one non-empty line of input."""
        while True:
            snap = controller.session
            print("\nBoard FEN:", snap.fen)
            print(snap.referee().board.unicode(invert_color=False, empty_square="·"))
            print(f"Material  white={snap.material.white} black={snap.material.black}  "
                  f"invalid AI moves={snap.invalid_move_count}/{controller.cfg.max_invalid_moves}")
            raw = input(prompt).strip()
            if raw:
                return raw
