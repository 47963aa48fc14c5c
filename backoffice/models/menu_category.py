from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from backoffice.core.database import Base


class MenuCategory(Base):
    __tablename__ = "menu_categories"

    id = Column(Integer, primary_key=True)
    menu_category_code = Column(String(32), unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    color_code = Column(String(16), nullable=True)
    display_order = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    store_code = Column(String(32), nullable=True)
    # Bumped whenever a category -> modifier group link changes.
    modifiers_changed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
