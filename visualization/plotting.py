"""Plot utilities for persisted session results."""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from data.session_log import SessionLog  # noqa: E402


class NoResultsError(LookupError):
    """Raised when the session log holds no rounds for the requested game."""


def plot_scores(db_path: str | Path, game: str, output_path: str | Path) -> Path:
    """Render score per round and the running best for ``game``."""
    log = SessionLog(db_path)
    try:
        rows = log.fetch_results(game)
    finally:
        log.close()
    if not rows:
        raise NoResultsError(f"No recorded rounds for game '{game}' in {db_path}.")

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    rounds = list(range(1, len(rows) + 1))
    scores = [int(row["score"]) for row in rows]
    best: list[int] = []
    for score in scores:
        best.append(max(score, best[-1]) if best else score)
    won = [(r, s) for r, s, row in zip(rounds, scores, rows) if row["status"] == "won"]

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(8, 6), sharex=True)
    ax1.plot(rounds, scores, marker="o", label="score")
    ax1.plot(rounds, best, linestyle="--", label="best")
    if won:
        ax1.scatter([r for r, _ in won], [s for _, s in won], color="tab:green", zorder=3, label="won")
    ax1.set_ylabel("score")
    ax1.set_title(game)
    ax1.legend()

    ax2.bar(rounds, [int(row["ticks"]) for row in rows], color="tab:gray", label="ticks")
    ax2.set_ylabel("ticks")
    ax2.set_xlabel("round")
    ax2.legend()

    fig.tight_layout()
    fig.savefig(output)
    plt.close(fig)
    return output
