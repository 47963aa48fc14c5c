from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, func

from backoffice.core.database import Base


class ModifierGroup(Base):
    __tablename__ = "modifier_groups"

    id = Column(Integer, primary_key=True)
    modifier_group_code = Column(String(32), unique=True, index=True, nullable=False)
    group_name = Column(String, nullable=False)
    label_name = Column(String, nullable=True)
    is_required = Column(Boolean, default=False, nullable=False)
    is_multiselect = Column(Boolean, default=False, nullable=False)
    # None = sem restrição
    min_selection = Column(Integer, nullable=True)
    max_selection = Column(Integer, nullable=True)
    show_default_top = Column(Boolean, default=False, nullable=False)
    price_strategy = Column(Integer, default=1, nullable=False)
    price = Column(Numeric(10, 2), nullable=True)
    # Categoria "de origem" do grupo; apenas informativo.
    menu_category_code = Column(String(32), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    store_code = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
