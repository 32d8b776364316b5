from django.urls import path
from .views import (
    health,
    get_puzzle_kinds,
    list_puzzles,
    start_session,
    session_detail,
    session_event,
    session_check,
    session_cancel,
)

urlpatterns = [
    path('health/', health, name='Health'),
    path('puzzle-kinds', get_puzzle_kinds, name='puzzle-kinds'),
    path('puzzles', list_puzzles, name='puzzles'),
    path('sessions', start_session, name='start-session'),
    path('sessions/<str:session_id>', session_detail, name='session-detail'),
    path('sessions/<str:session_id>/events', session_event, name='session-event'),
    path('sessions/<str:session_id>/check', session_check, name='session-check'),
    path('sessions/<str:session_id>/cancel', session_cancel, name='session-cancel'),
]
