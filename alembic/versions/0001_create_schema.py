from __future__ import annotations

from alembic import op

from backoffice.core.database import Base
import backoffice.models  # noqa: F401

revision = "0001_create_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Cria categorias, itens, grupos, opções, vínculos e auditoria.
    Base.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind())
