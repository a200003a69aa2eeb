from app.models.category import InvoiceCategory
from app.models.company import InvoiceCompany
from app.models.receiver import InvoiceReceiver
from app.models.tag import InvoiceTag
from app.models.invoice import Invoice, invoice_tag_mappings
from app.models.invoice_item import InvoiceItem

__all__ = ["InvoiceCategory", "InvoiceCompany", "InvoiceReceiver", "InvoiceTag", "Invoice", "InvoiceItem", "invoice_tag_mappings"]
