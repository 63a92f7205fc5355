from __future__ import annotations

from typing import Dict, List

from .errors import InvalidHandSize
from .evaluator import compare_hands
from .models import COLUMN_SIZE, NUM_COLUMNS, Board, ColumnResult, MatchResult


def score(board: Board) -> MatchResult:
    """Settle each column as a head-to-head hand; most columns wins the match."""
    if not board.is_full():
        raise InvalidHandSize(f"Every column must hold {COLUMN_SIZE} cards before scoring")

    results: List[ColumnResult] = []
    p1_wins = 0
    p2_wins = 0
    for column in range(NUM_COLUMNS):
        winner, eval1, eval2 = compare_hands(board.player1[column], board.player2[column])
        results.append(ColumnResult(column=column, winner=winner, player1=eval1, player2=eval2))
        if winner == 1:
            p1_wins += 1
        else:
            p2_wins += 1

    return MatchResult(
        columns=tuple(results),
        p1_wins=p1_wins,
        p2_wins=p2_wins,
        overall_winner=1 if p1_wins > p2_wins else 2,
    )


def result_payload(result: MatchResult) -> Dict[str, object]:
    return {
        "columns": [
            {
                "column": entry.column,
                "winner": entry.winner,
                "player1": {"rank": entry.player1.name, "tie_break": list(entry.player1.tie_break)},
                "player2": {"rank": entry.player2.name, "tie_break": list(entry.player2.tie_break)},
            }
            for entry in result.columns
        ],
        "p1_wins": result.p1_wins,
        "p2_wins": result.p2_wins,
        "overall_winner": result.overall_winner,
    }
