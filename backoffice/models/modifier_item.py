from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, func

from backoffice.core.database import Base


class ModifierItem(Base):
    __tablename__ = "modifier_items"

    id = Column(Integer, primary_key=True)
    modifier_item_code = Column(String(32), unique=True, index=True, nullable=False)
    modifier_group_code = Column(
        String(32),
        ForeignKey("modifier_groups.modifier_group_code", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    name = Column(String(255), nullable=False)
    label_name = Column(String(255), nullable=True)
    price = Column(Numeric(10, 2), default=0, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    display_order = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    color_code = Column(String(16), nullable=True)
    store_code = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
