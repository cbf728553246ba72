from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field


# --- Схема таблиц ---
# Имена без кавычек: Postgres сам приведет их к нижнему регистру (users, username, createdat).
CREATE_USERS_TABLE = '''
    CREATE TABLE IF NOT EXISTS public.Users (
        Id SERIAL PRIMARY KEY,
        Username VARCHAR(50) NOT NULL,
        Email VARCHAR(100) NOT NULL,
        CreatedAt TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        CONSTRAINT unique_username UNIQUE (Username)
    );
'''

CREATE_PRODUCTS_TABLE = '''
    CREATE TABLE IF NOT EXISTS public.Products (
        Id SERIAL PRIMARY KEY,
        Name VARCHAR(100) NOT NULL,
        Price DECIMAL(10, 2) NOT NULL,
        CreatedAt TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        CONSTRAINT unique_product_name UNIQUE (Name)
    );
'''

# Порядок важен только для логов: таблицы друг от друга не зависят
TABLES = {
    'users': CREATE_USERS_TABLE,
    'products': CREATE_PRODUCTS_TABLE,
}

# Проверка существования БД. Имя передаем параметром, а не строкой.
DATABASE_EXISTS_SQL = 'SELECT EXISTS(SELECT 1 FROM pg_database WHERE datname = $1)'

# ON CONFLICT ... DO NOTHING делает вставку идемпотентной: повторный запуск ничего не дублирует
INSERT_USER_SQL = '''
    INSERT INTO public.Users (Username, Email)
    VALUES ($1, $2)
    ON CONFLICT (Username) DO NOTHING
'''

INSERT_PRODUCT_SQL = '''
    INSERT INTO public.Products (Name, Price)
    VALUES ($1, $2)
    ON CONFLICT (Name) DO NOTHING
'''


# --- Модели Pydantic для начальных данных ---
# Ограничения повторяют колонки таблиц, чтобы кривой seed-файл падал еще до похода в БД.
class SeedUser(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=1, max_length=100)


class SeedProduct(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    price: Decimal = Field(max_digits=10, decimal_places=2)


class SeedData(BaseModel):
    users: List[SeedUser] = []
    products: List[SeedProduct] = []


# Фиксированные данные, которые появляются при первом старте
DEFAULT_SEED = SeedData(
    users=[
        SeedUser(username='john_doe', email='john.doe@example.com'),
        SeedUser(username='jane_smith', email='jane.smith@example.com'),
    ],
    products=[
        SeedProduct(name='Product 1', price=Decimal('19.99')),
        SeedProduct(name='Product 2', price=Decimal('29.99')),
        SeedProduct(name='Product 3', price=Decimal('39.99')),
    ],
)
