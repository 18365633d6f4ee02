"""Chart rendering for progress statistics."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from ..constants.categories import category_color  # noqa: E402
from .stats import ProgressStats  # noqa: E402

BAR_COLOR = "#6366F1"
TODAY_COLOR = "#F59E0B"


class ReportRenderer(Protocol):
    """Protocol describing renderer behavior."""

    def render(self, figure: Figure, *, output_path: Path) -> None:  # pragma: no cover - interface
        ...


def build_progress_chart(stats: ProgressStats) -> Figure:
    """Bar chart of completion rate per day (or per month for the year view)."""

    points = stats.daily_progress
    fig, ax = plt.subplots(figsize=(10, 5))

    if points and stats.total_habits:
        labels = [point.label for point in points]
        rates = [point.rate_percent for point in points]
        colors = [TODAY_COLOR if point.is_today else BAR_COLOR for point in points]
        bars = ax.bar(range(len(points)), rates, color=colors, edgecolor="white", linewidth=0.8)
        ax.set_xticks(range(len(points)))
        ax.set_xticklabels(labels, rotation=45 if len(points) > 12 else 0, ha="right", fontsize=8)
        ax.set_ylim(0, 105)
        ax.set_ylabel("Completion rate (%)")
        ax.grid(axis="y", alpha=0.3)
        ax.set_axisbelow(True)

        if len(points) <= 12:
            for bar, rate in zip(bars, rates):
                if rate:
                    ax.text(
                        bar.get_x() + bar.get_width() / 2,
                        bar.get_height() + 1,
                        f"{rate}%",
                        ha="center",
                        va="bottom",
                        fontsize=8,
                    )

        summary = (
            f"Rate: {stats.completion_rate}%\n"
            f"Trend: {stats.trend_direction.value} ({stats.trend_percentage:+d}%)\n"
            f"Best streak: {stats.max_streak}"
        )
        props = dict(boxstyle="round,pad=0.5", facecolor="#F3F4F6", alpha=0.9, edgecolor="#E5E7EB")
        ax.text(
            0.01, 0.98, summary, transform=ax.transAxes, fontsize=9,
            verticalalignment="top", bbox=props, color="#374151",
        )
    else:
        ax.text(0.5, 0.5, "No habit data", ha="center", va="center", fontsize=14, color="#666")
        ax.axis("off")

    ax.set_title(
        f"Progress {stats.start_date:%d %b %Y} - {stats.end_date:%d %b %Y}",
        fontsize=14,
        fontweight="bold",
    )
    fig.tight_layout()
    return fig


def build_category_chart(stats: ProgressStats) -> Figure:
    """Donut chart of habits per category."""

    fig, ax = plt.subplots(figsize=(7, 6))
    breakdown = stats.category_breakdown
    if breakdown:
        sizes = [item.value for item in breakdown]
        colors = [category_color(item.name) for item in breakdown]
        wedges, _texts = ax.pie(
            sizes,
            startangle=90,
            colors=colors,
            wedgeprops=dict(width=0.45, edgecolor="white", linewidth=1.5),
        )
        ax.legend(
            wedges,
            [f"{item.name.title()}: {item.value}" for item in breakdown],
            title="Categories",
            loc="center left",
            bbox_to_anchor=(1.0, 0.5),
            fontsize=9,
        )
        ax.text(0, 0, str(stats.total_habits), ha="center", va="center", fontsize=18, fontweight="bold")
        ax.axis("equal")
    else:
        ax.text(0.5, 0.5, "No habits yet", ha="center", va="center", fontsize=14, color="#666")
        ax.axis("off")
    ax.set_title("Habits by Category", fontsize=14, fontweight="bold")
    fig.tight_layout()
    return fig


def _save(fig: Figure, output_path: Path, renderer: ReportRenderer | None) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        if renderer is not None:
            renderer.render(fig, output_path=output_path)
        else:
            fig.savefig(output_path, bbox_inches="tight", dpi=120)
    finally:
        plt.close(fig)
    return output_path


def export_progress_png(
    *,
    stats: ProgressStats,
    output_path: Path,
    renderer: ReportRenderer | None = None,
) -> Path:
    """Render the progress chart to PNG and return the path."""

    return _save(build_progress_chart(stats), output_path, renderer)


def export_category_png(
    *,
    stats: ProgressStats,
    output_path: Path,
    renderer: ReportRenderer | None = None,
) -> Path:
    return _save(build_category_chart(stats), output_path, renderer)


__all__ = [
    "ReportRenderer",
    "build_category_chart",
    "build_progress_chart",
    "export_category_png",
    "export_progress_png",
]
