"""Environment identity model."""

from dataclasses import dataclass

from .errors import ValidationError


@dataclass(frozen=True)
class EnvironmentID:
    """Uniquely identifies an environment in which secrets are stored.

    Attributes:
        org_id: Organization the project belongs to.
        project_id: Project the environment belongs to. Empty only in the
            legacy org-only mode.
        env_name: Environment name within the project, usually one of
            ``dev``, ``prod`` or ``preview``.
    """

    org_id: str
    project_id: str
    env_name: str

    @classmethod
    def create(cls, project_id: str, org_id: str, env_name: str) -> "EnvironmentID":
        """Create an environment id for an initialized project."""
        if not project_id:
            raise ValidationError("project id can not be empty")
        return cls(org_id=org_id, project_id=project_id, env_name=env_name)
