# renobudget/services/aggregation_service.py
import datetime as dt
from typing import Dict, List, Optional, Sequence

import pandas as pd

from renobudget.db.enums import PRODUCTS_CATEGORY, SEED_CATEGORIES
from renobudget.db.room_repository import RoomRepository
from renobudget.logger import get_logger
from renobudget.schemas.dto.expense_dto import ExpenseDTO
from renobudget.schemas.dto.totals_dto import CategoryTotalDTO, ProductEntryDTO, ProjectTotalsDTO
from renobudget.services.cost_calculation_service import (
    compute_item_amount,
    compute_item_subtotal,
    compute_project_totals,
)

logger = get_logger(__name__)

# 旧数据里的西语分类名
_PRODUCT_CATEGORY_NAMES = {PRODUCTS_CATEGORY, "Producto"}


class AggregationService:
    """
    Read-only reports over every room, _general included.
    """

    def __init__(self, room_repository: RoomRepository):
        self.room_repository = room_repository

    def project_totals(self) -> ProjectTotalsDTO:
        return compute_project_totals(self.room_repository.list_rooms(include_general=True))

    def category_totals(self) -> List[CategoryTotalDTO]:
        '''
        Item count and subtotal sum per category across all rooms.

        Seed categories are always present (0 / 0 when never used); result is
        sorted by category name.
        '''
        totals: Dict[str, CategoryTotalDTO] = {
            name: CategoryTotalDTO(category=name) for name in SEED_CATEGORIES
        }
        for room in self.room_repository.list_rooms(include_general=True):
            for item in room.items:
                entry = totals.setdefault(item.category, CategoryTotalDTO(category=item.category))
                entry.count += 1
                entry.total += compute_item_amount(item)
        return sorted(totals.values(), key=lambda c: c.category.lower())

    def list_products(self) -> List[ProductEntryDTO]:
        products = []
        for room in self.room_repository.list_rooms(include_general=False):
            for item in room.items:
                if item.category in _PRODUCT_CATEGORY_NAMES:
                    products.append(ProductEntryDTO(
                        room=room.slug,
                        room_name=room.name,
                        subtotal=compute_item_subtotal(item),
                        item=item,
                    ))
        return products

    def summarize_expenses(
        self,
        expenses: Sequence[ExpenseDTO],
        start: Optional[dt.date] = None,
        end: Optional[dt.date] = None,
    ) -> List[CategoryTotalDTO]:
        """
        Expense amounts grouped by category, optionally limited to [start, end].

        Undated expenses drop out as soon as either bound is given.

        :param expenses: expenses as listed from the _general room
        :param start: inclusive lower date bound
        :param end: inclusive upper date bound
        :return: one row per category, highest total first
        """
        if not expenses:
            return []

        df = pd.DataFrame(
            [{"category": e.category, "amount": e.amount, "date": e.date} for e in expenses]
        )
        df["date"] = pd.to_datetime(df["date"], errors="coerce")

        if start is not None:
            df = df[df["date"] >= pd.Timestamp(start)]
        if end is not None:
            df = df[df["date"] <= pd.Timestamp(end)]
        if df.empty:
            return []

        grouped = (
            df.groupby("category", sort=False)["amount"]
            .agg(["sum", "count"])
            .reset_index()
            .sort_values(["sum", "category"], ascending=[False, True])
        )
        logger.debug("Expense summary over %d rows, %d categories", len(df), len(grouped))
        return [
            CategoryTotalDTO(category=row["category"], total=float(row["sum"]), count=int(row["count"]))
            for _, row in grouped.iterrows()
        ]
