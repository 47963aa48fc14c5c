from backoffice.models.menu_category import MenuCategory
from backoffice.models.menu_item import MenuItem
from backoffice.models.modifier_group import ModifierGroup
from backoffice.models.modifier_item import ModifierItem
from backoffice.models.category_modifier_link import CategoryModifierLink
from backoffice.models.item_modifier_assignment import ItemModifierAssignment
from backoffice.models.admin_user import AdminUser
from backoffice.models.admin_audit_log import AdminAuditLog
