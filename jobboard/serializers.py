"""Merge Octopod projects and activities into job records."""

from typing import Any, Dict, List, Optional

from .normalize import clean_text, nickname, customer_name

PROJECT_FIELDS = ["id", "name", "status", "start_date", "duration", "location", "nature"]
ACTIVITY_FIELDS = ["id", "title", "staffing_needed_from", "expected_start_date"]


class SerializationError(ValueError):
    """Raised when projects and activities cannot be merged into jobs."""


def _project_id_of(activity: Dict[str, Any]) -> Any:
    project = activity.get("project")
    if isinstance(project, dict):
        return project.get("id")
    return activity.get("project_id")


def serialize_project(project: Dict[str, Any]) -> Dict[str, Any]:
    data = {f: project.get(f) for f in PROJECT_FIELDS}
    data["name"] = clean_text(project.get("name"))
    data["customer"] = customer_name(project.get("customer"))
    data["business_contact"] = nickname(project.get("business_contact"))
    data["mission_director"] = nickname(project.get("mission_director"))
    return data


def serialize_activity(activity: Dict[str, Any]) -> Dict[str, Any]:
    data = {f: activity.get(f) for f in ACTIVITY_FIELDS}
    data["title"] = clean_text(activity.get("title"))
    return data


def serialize(projects: List[Dict[str, Any]], activities: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Build one job per activity, attached to the project it belongs to.

    Jobs come out in the order of ``activities``. Each job is
    ``{"id", "activity": {...}, "project": {...}}`` where ``id`` repeats the
    activity id.

    Raises:
        SerializationError: on non-dict records, a project without id, or an
            activity whose project is not among ``projects``
    """
    projects_by_id: Dict[Any, Dict[str, Any]] = {}
    for project in projects:
        if not isinstance(project, dict) or project.get("id") is None:
            raise SerializationError(f"Malformed project record: {project!r}")
        projects_by_id[project["id"]] = project

    jobs: List[Dict[str, Any]] = []
    for activity in activities:
        if not isinstance(activity, dict):
            raise SerializationError(f"Malformed activity record: {activity!r}")
        project_id = _project_id_of(activity)
        project: Optional[Dict[str, Any]] = projects_by_id.get(project_id)
        if project is None:
            raise SerializationError(
                f"Activity {activity.get('id')!r} references unknown project {project_id!r}"
            )
        jobs.append({
            "id": activity.get("id"),
            "activity": serialize_activity(activity),
            "project": serialize_project(project),
        })
    return jobs
