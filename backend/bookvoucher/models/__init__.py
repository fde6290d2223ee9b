from .accounts import Outlet, User
from .catalogue import School, Booklist, BooklistItem, OptionItem
from .redemptions import Redemption
from .stock import VoucherStock, DayEndReport, DayEndStockLine, StockDiscrepancy

__all__ = [
    'Outlet', 'User',
    'School', 'Booklist', 'BooklistItem', 'OptionItem',
    'Redemption',
    'VoucherStock', 'DayEndReport', 'DayEndStockLine', 'StockDiscrepancy',
]
