from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema
from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from .models import PuzzleDefinition
from .puzzles import ConfigNotFoundError, registry
from .seed_utils import puzzle_table
from .serializers import (
    EventRequestSerializer,
    PuzzleSummarySerializer,
    SessionResponseSerializer,
    StartSessionRequestSerializer,
)
from .sessions import SessionNotFound, SessionResolved, TargetNotFound, get_store

logger = logging.getLogger(__name__)

STRING_LIST = openapi.Response(
    "OK", schema=openapi.Schema(type=openapi.TYPE_ARRAY, items=openapi.Items(type=openapi.TYPE_STRING))
)


def _session_response(session, http_status: int = status.HTTP_200_OK, include_tree: bool = True) -> Response:
    return Response(SessionResponseSerializer(session.to_dict(include_tree=include_tree)).data, status=http_status)


def _with_session(session_id: str, action: Callable[[Any], None]) -> Response:
    """Run ``action`` on a live session and map its failures to HTTP errors."""
    try:
        session = get_store().get(session_id)
    except SessionNotFound:
        return Response({"error": "Session not found."}, status=status.HTTP_404_NOT_FOUND)
    try:
        action(session)
    except SessionResolved:
        return Response(
            {"error": "Puzzle already resolved.", "status": session.status},
            status=status.HTTP_409_CONFLICT,
        )
    except TargetNotFound as exc:
        return Response({"error": f"Target not found: {exc.args[0]!r}."}, status=status.HTTP_400_BAD_REQUEST)
    return _session_response(session)


# PUBLIC_INTERFACE
@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def health(request):
    """Health check endpoint for the API.

    Returns:
    - 200 OK with {"message": "Server is up!"}
    """
    return Response({"message": "Server is up!"})


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="get",
    operation_id="get_puzzle_kinds",
    operation_summary="List registered puzzle kinds",
    operation_description="Returns the kind names the puzzle registry resolves. Unknown kinds fall back to an inert base puzzle.",
    tags=["meta"],
    responses={200: STRING_LIST},
)
@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def get_puzzle_kinds(request):
    """List registered puzzle kinds."""
    return Response(registry.names(), status=status.HTTP_200_OK)


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="get",
    operation_id="list_puzzles",
    operation_summary="List puzzles in the puzzle table",
    operation_description="""
Returns active puzzle definitions.

Query params:
- kind (optional): only puzzles of this kind
""",
    manual_parameters=[openapi.Parameter("kind", openapi.IN_QUERY, type=openapi.TYPE_STRING, required=False)],
    responses={200: PuzzleSummarySerializer(many=True)},
    tags=["puzzles"],
)
@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def list_puzzles(request):
    """Active puzzle table entries, optionally filtered by kind."""
    qs = PuzzleDefinition.objects.filter(is_active=True)
    kind = (request.GET.get("kind") or "").strip().lower()
    if kind:
        qs = qs.filter(kind=kind)
    entries = [{"puzzle_id": p.puzzle_id, "kind": p.kind, "title": p.title} for p in qs]
    return Response(PuzzleSummarySerializer(entries, many=True).data, status=status.HTTP_200_OK)


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="post",
    operation_id="start_session",
    operation_summary="Launch a puzzle",
    operation_description="""
Create a play session for a puzzle from the puzzle table (ref) or an inline config.

Request body:
- ref (string) or config (object)
- instance_options (optional): block_until_solved, multi_select, aggregate_only, reset_on_fail, show_error_toast
- background (optional), rect (optional)

Response:
- session_id, puzzle_id, kind, status, held_count, result, toasts, tree
""",
    request_body=StartSessionRequestSerializer,
    responses={201: SessionResponseSerializer},
    tags=["sessions"],
)
@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def start_session(request):
    """Start a play session; 404 when the referenced puzzle does not exist."""
    serializer = StartSessionRequestSerializer(data=request.data or {})
    serializer.is_valid(raise_exception=True)
    vd: Dict[str, Any] = serializer.validated_data

    rect = vd.get("rect")
    try:
        session = get_store().start(
            puzzles=puzzle_table(),
            config=vd.get("config"),
            ref=vd.get("ref"),
            instance_options=dict(vd.get("instance_options") or {}),
            background=vd.get("background") or None,
            rect=dict(rect) if rect else None,
        )
    except ConfigNotFoundError as exc:
        logger.info("start_session: %s", exc)
        return Response({"error": "Puzzle config not found.", "ref": exc.ref}, status=status.HTTP_404_NOT_FOUND)
    return _session_response(session, status.HTTP_201_CREATED)


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="get",
    operation_id="session_detail",
    operation_summary="Get session state",
    operation_description="Status, forwarded result and the serialized element tree of the scene.",
    responses={200: SessionResponseSerializer},
    tags=["sessions"],
)
@swagger_auto_schema(
    method="delete",
    operation_id="session_delete",
    operation_summary="Unmount and discard a session",
    responses={204: "Deleted"},
    tags=["sessions"],
)
@api_view(["GET", "DELETE"])
@permission_classes([permissions.AllowAny])
def session_detail(request, session_id: str):
    """Read a session, or unmount and discard it."""
    store = get_store()
    try:
        if request.method == "DELETE":
            store.discard(session_id)
            return Response(status=status.HTTP_204_NO_CONTENT)
        session = store.get(session_id)
    except SessionNotFound:
        return Response({"error": "Session not found."}, status=status.HTTP_404_NOT_FOUND)
    session.refresh()
    return _session_response(session)


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="post",
    operation_id="session_event",
    operation_summary="Dispatch an interaction",
    operation_description="""
Dispatch a user interaction on an element of the scene.

Request body:
- event: click | input | keydown | pointerdown | pointermove | pointerup
- target (element data-id) or selector (CSS)
- value, key, x, y as the event requires; advance_ms to let timers run

Errors: 400 for a missing target, 404 for an unknown session, 409 once the puzzle has resolved.
""",
    request_body=EventRequestSerializer,
    responses={200: SessionResponseSerializer},
    tags=["sessions"],
)
@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def session_event(request, session_id: str):
    """Apply one interaction to the session's puzzle."""
    serializer = EventRequestSerializer(data=request.data or {})
    serializer.is_valid(raise_exception=True)
    vd = serializer.validated_data
    return _with_session(
        session_id,
        lambda session: session.interact(
            vd["event"],
            target=vd.get("target"),
            selector=vd.get("selector"),
            value=vd.get("value"),
            key=vd.get("key"),
            x=vd.get("x"),
            y=vd.get("y"),
            advance_ms=vd.get("advance_ms", 0),
        ),
    )


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="post",
    operation_id="session_check",
    operation_summary="Press OK",
    operation_description="Validate the active puzzle. A held failure keeps the session open (status 'held').",
    responses={200: SessionResponseSerializer},
    tags=["sessions"],
)
@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def session_check(request, session_id: str):
    """Validate the active puzzle."""
    return _with_session(session_id, lambda session: session.check())


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="post",
    operation_id="session_cancel",
    operation_summary="Press Cancel",
    operation_description="Cancel the active puzzle. Always resolves ok=false and is never held.",
    responses={200: SessionResponseSerializer},
    tags=["sessions"],
)
@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def session_cancel(request, session_id: str):
    """Cancel the active puzzle."""
    return _with_session(session_id, lambda session: session.cancel())
