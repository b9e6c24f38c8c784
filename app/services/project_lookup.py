"""
Project lookup - the only view of projects this service needs
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.exceptions import NotFoundError
from app.models.project import Project


class ProjectLookupService:
    """Resolves projects by id or by the key extraction clients send"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, project_id: int) -> Project:
        project = await self.db.get(Project, project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    async def get_by_key(self, project_key: str) -> Project:
        """
        Get a project by its public key

        Raises:
            NotFoundError: If no project has this key
        """
        stmt = select(Project).where(Project.project_key == project_key)
        result = await self.db.execute(stmt)
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError("project", project_key)
        return project
