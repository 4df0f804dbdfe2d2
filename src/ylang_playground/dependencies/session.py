"""Playground session dependency.

The session lives on ``app.state`` for the lifetime of the application; it is
created and torn down by the lifespan in ``ylang_playground.main``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from ylang_playground.services.playground import PlaygroundSession


def get_session(request: Request) -> PlaygroundSession:
    session: PlaygroundSession | None = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Playground session is not initialized",
        )
    return session


SessionDep = Annotated[PlaygroundSession, Depends(get_session)]
