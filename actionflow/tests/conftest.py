import pytest

from actionflow.common.schemas import Project, Team, User
from actionflow.common.store import InMemoryStore


@pytest.fixture
def store() -> InMemoryStore:
    """
    Store with one user (u1, Maria Lopez) who owns project p1 in team t1,
    plus a second user (u2, Omar Haddad).
    """
    s = InMemoryStore()
    s.add_user(User(id="u1", name="Maria Lopez"))
    s.add_user(User(id="u2", name="Omar Haddad"))
    s.add_team(Team(id="t1", name="Core"))
    s.add_project(Project(id="p1", name="Apollo", created_by_id="u1", team_id="t1"))
    return s
