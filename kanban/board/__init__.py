"""
Kanban Board Module
Flask Blueprint exposing board snapshots and drag-and-drop reordering for
every collection registered with the kanban registry.
"""
from flask import Blueprint

kanban_bp = Blueprint("kanban", __name__)

from kanban.board import routes
