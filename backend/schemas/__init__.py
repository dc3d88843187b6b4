"""
Competitor Intel - Pydantic Schema Models

Organized by domain for use across routers.
"""

from schemas.competitors import (  # noqa: F401
    CompetitorCreate,
    CompetitorUpdate,
    CompetitorResponse,
    CompetitorWithStats,
    CompetitorDetail,
)
from schemas.sources import (  # noqa: F401
    SourceCreate,
    SourceResponse,
)
from schemas.claims import (  # noqa: F401
    ClaimCreate,
    ClaimUpdate,
    ClaimDetailsPatch,
    ClaimVerifyRequest,
    ClaimResponse,
)
from schemas.imports import (  # noqa: F401
    CSVImportRequest,
    ImportStatsResponse,
)
from schemas.auth import (  # noqa: F401
    LoginRequest,
)
