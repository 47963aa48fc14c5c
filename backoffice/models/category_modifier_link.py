from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, func

from backoffice.core.database import Base


class CategoryModifierLink(Base):
    """Grupo disponível para herança por todos os itens da categoria."""

    __tablename__ = "menu_category_modifiers"
    __table_args__ = (
        Index(
            "ix_menu_category_modifiers_category_group",
            "menu_category_code",
            "modifier_group_code",
            unique=True,
        ),
    )

    id = Column(Integer, primary_key=True)
    menu_category_code = Column(
        String(32),
        ForeignKey("menu_categories.menu_category_code", ondelete="CASCADE"),
        nullable=False,
    )
    modifier_group_code = Column(
        String(32),
        ForeignKey("modifier_groups.modifier_group_code", ondelete="CASCADE"),
        nullable=False,
    )
    store_code = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
