"""Shared project workspace: chat messages and file uploads."""

import logging
from typing import Callable, Optional

from ..backend import Backend
from ..backend.changes import ChangeEvent, ChangeKind, Subscription
from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..models.identity import CallerIdentity, Role
from ..models.project import Project, ProjectFile, ProjectMessage

logger = logging.getLogger(__name__)

FILES_BUCKET = "project-files"


class ProjectWorkspace:
    """Projects plus the messages and files their participants exchange."""

    def __init__(self, backend: Backend):
        self.backend = backend
        self.store = backend.store

    # === Projects ===

    def get_project(self, project_id: str) -> Project:
        """Get a project by ID."""
        row = self.store.get("projects", project_id)
        if row is None:
            raise NotFoundError(f"Project not found: {project_id}")
        return Project.from_dict(row)

    def create_project(
        self,
        caller: CallerIdentity,
        title: str,
        seeker_id: str,
        expert_id: str,
        description: str = "",
        inquiry_id: Optional[str] = None,
    ) -> Project:
        """Open a project between a seeker and an expert."""
        caller.require_role(Role.SEEKER, Role.EXPERT, Role.ADMIN)
        if not (title or "").strip():
            raise ValidationError("Project title is required", fields=["title"])

        project = Project(
            title=title.strip(),
            description=description,
            seeker_id=seeker_id,
            expert_id=expert_id,
            inquiry_id=inquiry_id,
        )
        if not project.is_participant(caller):
            raise AuthorizationError("Projects can only be opened by one of their participants")

        self.store.insert("projects", project.to_dict())
        logger.info("Project %s opened between %s and %s", project.id, seeker_id, expert_id)
        return project

    def list_projects(self, caller: CallerIdentity) -> list[Project]:
        """Projects the caller takes part in, newest first."""
        rows = self.store.select("projects", order_by="created_at", descending=True)
        projects = [Project.from_dict(r) for r in rows]
        return [p for p in projects if p.is_participant(caller)]

    def _participant_project(self, caller: CallerIdentity, project_id: str) -> Project:
        project = self.get_project(project_id)
        if not project.is_participant(caller):
            raise AuthorizationError(f"{caller.user_id} is not part of project {project_id}")
        return project

    # === Messages ===

    def send_message(self, caller: CallerIdentity, project_id: str, text: str) -> ProjectMessage:
        """Post a chat message to the project."""
        self._participant_project(caller, project_id)
        text = (text or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty", fields=["message"])

        message = ProjectMessage(project_id=project_id, sender_id=caller.user_id, message=text)
        self.store.insert("project_messages", message.to_dict())
        return message

    def messages(self, project_id: str) -> list[ProjectMessage]:
        """Messages of a project, oldest first."""
        rows = self.store.select("project_messages", {"project_id": project_id}, order_by="created_at")
        return [ProjectMessage.from_dict(r) for r in rows]

    def subscribe(
        self,
        project_id: str,
        callback: Callable[[ProjectMessage], None],
    ) -> Subscription:
        """Call ``callback`` with every new message posted to the project."""
        def deliver(event: ChangeEvent) -> None:
            callback(ProjectMessage.from_dict(event.new))

        return self.backend.changes.subscribe(
            "project_messages",
            deliver,
            kinds={ChangeKind.INSERT},
            filters={"project_id": project_id},
        )

    # === Files ===

    def upload_file(
        self,
        caller: CallerIdentity,
        project_id: str,
        filename: str,
        data: bytes,
        mime_type: str = "application/octet-stream",
    ) -> ProjectFile:
        """Store a file blob under the project and record its metadata."""
        self._participant_project(caller, project_id)
        if not (filename or "").strip():
            raise ValidationError("Filename is required", fields=["filename"])

        storage = self.backend.storage
        path = storage.timestamped_path(FILES_BUCKET, project_id, filename)
        storage.upload(FILES_BUCKET, path, data)

        record = ProjectFile(
            project_id=project_id,
            filename=filename,
            file_path=path,
            file_size=len(data),
            mime_type=mime_type,
            uploaded_by=caller.user_id,
        )
        self.store.insert("project_files", record.to_dict())
        logger.info("File %s uploaded to project %s", path, project_id)
        return record

    def files(self, project_id: str) -> list[ProjectFile]:
        """Files of a project, newest first."""
        rows = self.store.select(
            "project_files", {"project_id": project_id}, order_by="created_at", descending=True
        )
        return [ProjectFile.from_dict(r) for r in rows]

    def download_file(self, caller: CallerIdentity, file_id: str) -> bytes:
        """Fetch the content of an uploaded file."""
        row = self.store.get("project_files", file_id)
        if row is None:
            raise NotFoundError(f"File not found: {file_id}")
        self._participant_project(caller, row["project_id"])
        return self.backend.storage.download(FILES_BUCKET, row["file_path"])
