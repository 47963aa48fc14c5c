from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, func

from backoffice.core.database import Base


class ItemModifierAssignment(Base):
    """Resultado materializado da resolução de herança de um item.

    Reconstruível a partir de CategoryModifierLink + seleções explícitas;
    sempre substituído por completo a cada gravação.
    """

    __tablename__ = "menu_item_modifiers"
    __table_args__ = (
        Index(
            "ix_menu_item_modifiers_item_group",
            "menu_item_code",
            "modifier_group_code",
            unique=True,
        ),
    )

    id = Column(Integer, primary_key=True)
    menu_item_code = Column(
        String(32),
        ForeignKey("menu_items.menu_item_code", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    modifier_group_code = Column(
        String(32),
        ForeignKey("modifier_groups.modifier_group_code", ondelete="CASCADE"),
        nullable=False,
    )
    inherit_from_menu_group = Column(Boolean, default=False, nullable=False)
    is_inherit_from_menu_category = Column(Boolean, default=False, nullable=False)
    # Overrides por item; None = usa o padrão do grupo
    is_required = Column(Boolean, nullable=True)
    is_multiselect = Column(Boolean, nullable=True)
    min_selection = Column(Integer, nullable=True)
    max_selection = Column(Integer, nullable=True)
    position = Column(Integer, default=0, nullable=False)
    store_code = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
