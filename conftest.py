import sys
from pathlib import Path
import os

import pytest

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DMOSH_DEFAULT_SEED", "0")
os.environ.setdefault("DMOSH_DEFAULT_TIMELINE_ID", "timeline-1")

from dmosh.project.models import Project, ProjectMetadata, ProjectSettings, Source  # noqa: E402
from dmosh.timeline.models import Timeline, TimelineClip, TimelineTrack  # noqa: E402


def make_project(name: str = "Mosh Test", fps: float = 4.0) -> Project:
    """One track, one source, one 12-frame clip. At 4 fps I-frames land on 0, 4 and 8."""
    return Project(
        metadata=ProjectMetadata(name=name, author="tests"),
        seed=7,
        settings=ProjectSettings(width=640, height=360, fps=fps, block_size=16),
        sources=[Source(id="src-1", original_name="input.mp4", duration_frames=120)],
        timeline=Timeline(
            id="timeline-1",
            fps=fps,
            width=640,
            height=360,
            tracks=[TimelineTrack(id="track-1", name="Video 1", index=0)],
            clips=[
                TimelineClip(
                    id="clip-1",
                    track_id="track-1",
                    source_id="src-1",
                    start_frame=0,
                    end_frame=12,
                    timeline_start_frame=0,
                )
            ],
        ),
    )


@pytest.fixture
def sample_project() -> Project:
    return make_project()
