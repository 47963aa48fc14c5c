from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func

from backoffice.core.database import Base


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True)
    menu_item_code = Column(String(32), unique=True, index=True, nullable=False)
    menu_category_code = Column(
        String(32),
        ForeignKey("menu_categories.menu_category_code"),
        nullable=True,
        index=True,
    )
    name = Column(String, nullable=False)
    kitchen_name = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    base_price = Column(Numeric(10, 2), default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    inherit_modifier_group = Column(Boolean, default=True, nullable=False)
    modifiers_resolved_at = Column(DateTime(timezone=True), nullable=True)
    store_code = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
