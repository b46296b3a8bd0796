"""
Servizio per la gestione delle categorie
"""
from decimal import Decimal

from sqlalchemy import func

from spese.services import BaseService, get_month_boundaries
from spese.models.Category import Category
from spese.models.Expense import Expense
from spese.defaults import CATEGORIE_DEFAULT, COLORE_DEFAULT


class CategorieService(BaseService):
    """Servizio per la gestione delle categorie di un utente"""

    def get_all_categories(self, user_id):
        """Recupera tutte le categorie dell'utente in ordine alfabetico"""
        return Category.query.filter_by(user_id=user_id).order_by(Category.name.asc()).all()

    def get_categories_dict(self, user_id):
        """Categorie come lista di dizionari, con il numero di spese associate"""
        rows = (
            self.db.session.query(Category, func.count(Expense.id))
            .outerjoin(Expense, (Expense.category_id == Category.id) & Expense.deleted_at.is_(None))
            .filter(Category.user_id == user_id)
            .group_by(Category.id)
            .order_by(Category.name.asc())
            .all()
        )
        return [
            {'id': c.id, 'name': c.name, 'color': c.color, 'icon': c.icon, 'expenses_count': count}
            for c, count in rows
        ]

    def _name_taken(self, user_id, name, exclude_id=None):
        query = Category.query.filter_by(user_id=user_id, name=name)
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        return query.first() is not None

    def create_categoria(self, user_id, name, color=COLORE_DEFAULT, icon=None):
        """Crea una nuova categoria; restituisce (success, message, categoria)"""
        name = (name or '').strip()
        if not name:
            return False, "Please enter a category name.", None
        if len(name) > 255:
            return False, "The category name must be at most 255 characters.", None
        if not color:
            return False, "Please select a color.", None

        # Verifica che non esista già per lo stesso utente
        if self._name_taken(user_id, name):
            return False, "You already have a category with this name.", None

        categoria = Category(user_id=user_id, name=name, color=color, icon=icon or None)
        success, message = self.save(categoria)
        if not success:
            return False, message, None
        return True, f"Category '{name}' created successfully.", categoria

    def update_categoria(self, categoria_id, name=None, color=None, icon=None):
        """Aggiorna una categoria esistente"""
        categoria = self.db.session.get(Category, categoria_id)
        if not categoria:
            return False, "Category not found"

        changes = {}
        if name is not None:
            name = name.strip()
            if not name:
                return False, "Please enter a category name."
            if name != categoria.name and self._name_taken(categoria.user_id, name, exclude_id=categoria.id):
                return False, "You already have a category with this name."
            changes['name'] = name
        if color:
            changes['color'] = color
        if icon is not None:
            changes['icon'] = icon or None

        success, message = self.update(categoria, **changes)
        return success, message if not success else "Category updated successfully."

    def delete_categoria(self, categoria_id):
        """Elimina una categoria senza spese associate"""
        categoria = self.db.session.get(Category, categoria_id)
        if not categoria:
            return False, "Category not found"

        # Verifica che non ci siano spese associate
        if Expense.query.filter_by(category_id=categoria.id).count() > 0:
            return False, "Can not delete category with existing expenses."

        name = categoria.name
        success, message = self.delete(categoria)
        return success, message if not success else f"Category '{name}' deleted successfully!"

    def get_total_spent_for_month(self, categoria_id, month, year):
        """Somma delle spese della categoria nel mese indicato"""
        start, end = get_month_boundaries(year, month)
        value = (
            Expense.spending()
            .filter(Expense.category_id == categoria_id, Expense.date >= start, Expense.date <= end)
            .with_entities(func.coalesce(func.sum(Expense.amount), 0))
            .scalar()
        )
        return Decimal(str(value or 0)).quantize(Decimal('0.01'))

    def create_default_categories(self, user_id):
        """Crea le categorie predefinite mancanti per l'utente; restituisce quante ne ha create"""
        created = 0
        for name, color in CATEGORIE_DEFAULT:
            if self._name_taken(user_id, name):
                continue
            success, _, _ = self.create_categoria(user_id, name, color=color)
            if success:
                created += 1
        return created
