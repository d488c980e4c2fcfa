from pydantic import BaseModel

from .note import Note
from .project import Experiment, Project


class SearchResults(BaseModel):
    notes: list[Note] = []
    projects: list[Project] = []
    experiments: list[Experiment] = []
