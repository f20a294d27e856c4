"""Category domain service."""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from famfin.database.base import Database
from famfin.domain.entities import Category, CategoryType, Collection, WriteBatch
from famfin.domain.errors import NotFoundError, ValidationError, category_not_found

# Default category set: (name, type, icon, color)
DEFAULT_CATEGORIES = [
    # Income
    ("Salário", CategoryType.INCOME, "Briefcase", "#10b981"),
    ("Freelance", CategoryType.INCOME, "Code", "#14b8a6"),
    ("Investimentos", CategoryType.INCOME, "TrendingUp", "#06b6d4"),
    ("Presentes", CategoryType.INCOME, "Gift", "#8b5cf6"),
    ("Bônus", CategoryType.INCOME, "Award", "#f59e0b"),
    ("Comissões", CategoryType.INCOME, "Percent", "#22c55e"),
    ("Aluguel Recebido", CategoryType.INCOME, "Building2", "#0ea5e9"),
    ("Dividendos", CategoryType.INCOME, "PieChart", "#6366f1"),
    ("Outros Ganhos", CategoryType.INCOME, "DollarSign", "#22c55e"),
    # Housing
    ("Aluguel", CategoryType.EXPENSE, "Home", "#8b5cf6"),
    ("Condomínio", CategoryType.EXPENSE, "Building", "#7c3aed"),
    ("IPTU", CategoryType.EXPENSE, "FileText", "#6d28d9"),
    ("Móveis", CategoryType.EXPENSE, "Sofa", "#a855f7"),
    ("Reformas", CategoryType.EXPENSE, "Hammer", "#9333ea"),
    # Food
    ("Supermercado", CategoryType.EXPENSE, "ShoppingCart", "#ef4444"),
    ("Restaurantes", CategoryType.EXPENSE, "UtensilsCrossed", "#dc2626"),
    ("Padaria", CategoryType.EXPENSE, "Cookie", "#f97316"),
    ("Lanchonete", CategoryType.EXPENSE, "Coffee", "#fb923c"),
    ("Delivery", CategoryType.EXPENSE, "Bike", "#f59e0b"),
    # Bills
    ("Energia Elétrica", CategoryType.EXPENSE, "Zap", "#eab308"),
    ("Água", CategoryType.EXPENSE, "Droplet", "#06b6d4"),
    ("Gás", CategoryType.EXPENSE, "Flame", "#f97316"),
    ("Internet", CategoryType.EXPENSE, "Wifi", "#0ea5e9"),
    ("Telefone", CategoryType.EXPENSE, "Phone", "#3b82f6"),
    # Health
    ("Plano de Saúde", CategoryType.EXPENSE, "Heart", "#ec4899"),
    ("Medicamentos", CategoryType.EXPENSE, "Pill", "#f43f5e"),
    ("Consultas", CategoryType.EXPENSE, "Stethoscope", "#fb7185"),
    ("Exames", CategoryType.EXPENSE, "Activity", "#e11d48"),
    ("Academia", CategoryType.EXPENSE, "Dumbbell", "#db2777"),
    # Transport
    ("Combustível", CategoryType.EXPENSE, "Fuel", "#6366f1"),
    ("Transporte Público", CategoryType.EXPENSE, "Bus", "#8b5cf6"),
    ("Uber/Taxi", CategoryType.EXPENSE, "Car", "#a855f7"),
    ("Manutenção Veículo", CategoryType.EXPENSE, "Wrench", "#7c3aed"),
    ("Estacionamento", CategoryType.EXPENSE, "ParkingCircle", "#6d28d9"),
    ("Pedágio", CategoryType.EXPENSE, "Ticket", "#9333ea"),
    # Education
    ("Mensalidade Escolar", CategoryType.EXPENSE, "GraduationCap", "#3b82f6"),
    ("Cursos", CategoryType.EXPENSE, "BookOpen", "#2563eb"),
    ("Livros", CategoryType.EXPENSE, "Book", "#1d4ed8"),
    ("Material Escolar", CategoryType.EXPENSE, "Pencil", "#60a5fa"),
    ("Desenvolvimento Pessoal", CategoryType.EXPENSE, "BookOpen", "#9333ea"),
    # Leisure
    ("Cinema", CategoryType.EXPENSE, "Film", "#a855f7"),
    ("Shows/Eventos", CategoryType.EXPENSE, "Music", "#c026d3"),
    ("Streaming", CategoryType.EXPENSE, "Tv", "#d946ef"),
    ("Games", CategoryType.EXPENSE, "Gamepad2", "#e879f9"),
    ("Hobbies", CategoryType.EXPENSE, "Paintbrush", "#f0abfc"),
    ("Viagens", CategoryType.EXPENSE, "Plane", "#14b8a6"),
    ("Parques/Passeios", CategoryType.EXPENSE, "Trees", "#22c55e"),
    # Clothing
    ("Roupas", CategoryType.EXPENSE, "Shirt", "#f97316"),
    ("Calçados", CategoryType.EXPENSE, "FootprintsIcon", "#fb923c"),
    ("Acessórios", CategoryType.EXPENSE, "Watch", "#fdba74"),
    # Personal care
    ("Salão/Barbearia", CategoryType.EXPENSE, "Scissors", "#ec4899"),
    ("Cosméticos", CategoryType.EXPENSE, "Sparkles", "#f472b6"),
    ("Perfumes", CategoryType.EXPENSE, "Sprout", "#fb7185"),
    ("Produtos de Higiene", CategoryType.EXPENSE, "Droplets", "#06b6d4"),
    # Pets
    ("Veterinário", CategoryType.EXPENSE, "HeartPulse", "#22c55e"),
    ("Ração", CategoryType.EXPENSE, "Dog", "#16a34a"),
    ("Pet Shop", CategoryType.EXPENSE, "PawPrint", "#15803d"),
    # Technology
    ("Celular/Eletrônicos", CategoryType.EXPENSE, "Smartphone", "#0ea5e9"),
    ("Softwares", CategoryType.EXPENSE, "Laptop", "#0284c7"),
    ("Apps/Assinaturas Digitais", CategoryType.EXPENSE, "Cloud", "#0369a1"),
    # Insurance
    ("Seguro Auto", CategoryType.EXPENSE, "Shield", "#64748b"),
    ("Seguro Residência", CategoryType.EXPENSE, "ShieldCheck", "#475569"),
    ("Seguro de Vida", CategoryType.EXPENSE, "ShieldAlert", "#334155"),
    # Financial
    ("Taxas Bancárias", CategoryType.EXPENSE, "CreditCard", "#64748b"),
    ("Juros de Empréstimo", CategoryType.EXPENSE, "AlertCircle", "#dc2626"),
    ("Impostos", CategoryType.EXPENSE, "Receipt", "#475569"),
    ("Doações", CategoryType.EXPENSE, "HandHeart", "#10b981"),
    # Other
    ("Presentes/Festas", CategoryType.EXPENSE, "PartyPopper", "#f59e0b"),
    ("Despesas Jurídicas", CategoryType.EXPENSE, "Scale", "#78716c"),
    ("Correios/Encomendas", CategoryType.EXPENSE, "Package", "#a3a3a3"),
    ("Outros Gastos", CategoryType.EXPENSE, "MoreHorizontal", "#94a3b8"),
]


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: Database, clock: Optional[Callable[[], datetime]] = None):
        """Initialize category service.

        Args:
            db: Database instance
            clock: Optional callable returning the current time
        """
        self.db = db
        self.clock = clock or datetime.now

    def create_category(
        self,
        user_id: str,
        name: str,
        category_type: CategoryType,
        icon: str = "Tag",
        color: str = "#64748b",
        monthly_budget: Optional[Decimal] = None,
    ) -> str:
        """Create a category.

        Returns:
            Category ID

        Raises:
            ValidationError: If the name is empty or already used for the same type
        """
        name = name.strip()
        if not name:
            raise ValidationError("Category name must not be empty")
        for existing in self.db.list_categories(user_id):
            if existing.name == name and existing.category_type == category_type and not existing.is_archived:
                raise ValidationError(f"Category '{name}' already exists")

        category = Category(
            id=self.db.new_id(),
            name=name,
            category_type=category_type,
            created_at=self.clock(),
            icon=icon,
            color=color,
            monthly_budget=monthly_budget,
        )
        self.db.put(user_id, category)
        return category.id

    def get_category(self, user_id: str, category_id: str) -> Optional[Category]:
        """Get category by ID.

        Returns:
            Category entity or None if not found
        """
        return self.db.get_category(user_id, category_id)

    def list_categories(
        self,
        user_id: str,
        category_type: Optional[CategoryType] = None,
        include_archived: bool = False,
    ) -> list[Category]:
        """List categories ordered by name.

        Args:
            user_id: Namespace owner
            category_type: Optional income/expense filter
            include_archived: If True, archived categories are listed too
        """
        return [
            category
            for category in self.db.list_categories(user_id)
            if (include_archived or not category.is_archived)
            and (category_type is None or category.category_type == category_type)
        ]

    def _set_archived(self, user_id: str, category_id: str, archived: bool) -> None:
        if self.db.get_category(user_id, category_id) is None:
            raise NotFoundError(category_not_found(category_id))
        self.db.commit(user_id, WriteBatch().patch(Collection.CATEGORIES, category_id, is_archived=archived))

    def archive_category(self, user_id: str, category_id: str) -> None:
        """Hide a category from listings while keeping it for history."""
        self._set_archived(user_id, category_id, True)

    def unarchive_category(self, user_id: str, category_id: str) -> None:
        self._set_archived(user_id, category_id, False)

    def seed_default_categories(self, user_id: str) -> int:
        """Create the default categories missing from the namespace.

        Returns:
            Number of categories created
        """
        existing = {(c.name, c.category_type) for c in self.db.list_categories(user_id)}
        batch = WriteBatch()
        now = self.clock()
        for name, category_type, icon, color in DEFAULT_CATEGORIES:
            if (name, category_type) in existing:
                continue
            batch.put(
                Category(
                    id=self.db.new_id(),
                    name=name,
                    category_type=category_type,
                    created_at=now,
                    icon=icon,
                    color=color,
                )
            )
        if batch.records:
            self.db.commit(user_id, batch)
        return len(batch.records)
