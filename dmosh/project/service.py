from __future__ import annotations

from dmosh.config.runtime_config import get_default_fps, get_default_timeline_id
from dmosh.project.models import Project, ProjectMetadata, ProjectSettings
from dmosh.timeline.models import Timeline, TimelineTrack


def create_empty_project(name: str, author: str = "") -> Project:
    """New project with one empty video track, ready for editing."""
    fps = get_default_fps()
    return Project(
        metadata=ProjectMetadata(name=name, author=author),
        settings=ProjectSettings(fps=fps),
        timeline=Timeline(
            id=get_default_timeline_id(),
            fps=fps,
            tracks=[TimelineTrack(id="track-1", name="Video 1", index=0)],
        ),
    )


def project_to_json(project: Project) -> str:
    return project.model_dump_json()


def project_from_json(payload: str) -> Project:
    return Project.model_validate_json(payload)
