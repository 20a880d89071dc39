"""Release pipeline.

- errors: failure taxonomy shared by every stage
- model: request, plan and accumulated pipeline state
- fsm: generic step-handler loop
- environment: pre-flight checks
- builder: artifact build collaborator
- pipeline: the staged release with rollback
"""

from __future__ import annotations
