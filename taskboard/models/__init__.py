from taskboard.models.base import StoreModel, utcnow
from taskboard.models.user import Credentials, UserProfile
from taskboard.models.board import Board, BoardMember, BoardUserRole, MemberStatus
from taskboard.models.task_list import TaskList
from taskboard.models.card import Card, Comment
