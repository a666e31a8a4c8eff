# retail_analytics/models.py
from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, ForeignKey, Index, Integer, Numeric, SmallInteger, String
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


# Production domain

class BrandModel(Base):
    __tablename__ = 'brands'

    brand_id = Column(Integer, primary_key=True, autoincrement=False)
    brand_name = Column(String(255), nullable=False)

    products = relationship("ProductModel", back_populates="brand")


class CategoryModel(Base):
    __tablename__ = 'categories'

    category_id = Column(Integer, primary_key=True, autoincrement=False)
    category_name = Column(String(255), nullable=False)

    products = relationship("ProductModel", back_populates="category")


class ProductModel(Base):
    __tablename__ = 'products'

    product_id = Column(Integer, primary_key=True, autoincrement=False)
    product_name = Column(String(255), nullable=False)
    brand_id = Column(Integer, ForeignKey('brands.brand_id'), nullable=False)
    category_id = Column(Integer, ForeignKey('categories.category_id'), nullable=False)
    model_year = Column(SmallInteger)
    list_price = Column(Numeric(10, 2), nullable=False)

    brand = relationship("BrandModel", back_populates="products")
    category = relationship("CategoryModel", back_populates="products")

    __table_args__ = (
        CheckConstraint('model_year BETWEEN 1900 AND 2100', name='chk_products_model_year'),
        CheckConstraint('list_price > 0', name='chk_products_list_price'),
        Index('idx_products_brand', 'brand_id'),
        Index('idx_products_category', 'category_id'),
    )


class StockModel(Base):
    __tablename__ = 'stocks'

    store_id = Column(Integer, ForeignKey('stores.store_id'), primary_key=True, autoincrement=False)
    product_id = Column(Integer, ForeignKey('products.product_id'), primary_key=True, autoincrement=False)
    quantity = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint('quantity >= 0', name='chk_stocks_quantity'),
        Index('idx_stocks_product', 'product_id'),
        Index('idx_stocks_store', 'store_id'),
    )


# Sales domain

class StoreModel(Base):
    __tablename__ = 'stores'

    store_id = Column(Integer, primary_key=True, autoincrement=False)
    store_name = Column(String(255), nullable=False)
    phone = Column(String(40))
    email = Column(String(255))
    street = Column(String(255))
    city = Column(String(100))
    state = Column(String(100))
    zip_code = Column(String(20))


class CustomerModel(Base):
    __tablename__ = 'customers'

    customer_id = Column(Integer, primary_key=True, autoincrement=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    phone = Column(String(40))
    email = Column(String(255))
    street = Column(String(255))
    city = Column(String(100))
    state = Column(String(100))
    zip_code = Column(String(20))


class StaffModel(Base):
    __tablename__ = 'staffs'

    staff_id = Column(Integer, primary_key=True, autoincrement=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(40))
    active = Column(Boolean, nullable=False, default=True)
    store_id = Column(Integer, ForeignKey('stores.store_id'), nullable=False)
    manager_id = Column(Integer, ForeignKey('staffs.staff_id'))


class OrderModel(Base):
    __tablename__ = 'orders'

    order_id = Column(Integer, primary_key=True, autoincrement=False)
    customer_id = Column(Integer, ForeignKey('customers.customer_id'), nullable=False)
    order_status = Column(String(50), nullable=False)
    order_date = Column(Date, nullable=False)
    required_date = Column(Date)
    shipped_date = Column(Date)
    store_id = Column(Integer, ForeignKey('stores.store_id'), nullable=False)
    staff_id = Column(Integer, ForeignKey('staffs.staff_id'), nullable=False)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint('required_date IS NULL OR required_date >= order_date', name='chk_required_ge_order'),
        CheckConstraint('shipped_date IS NULL OR shipped_date >= order_date', name='chk_shipped_ge_order'),
        Index('idx_orders_customer', 'customer_id'),
        Index('idx_orders_store', 'store_id'),
        Index('idx_orders_staff', 'staff_id'),
        Index('idx_orders_order_date', 'order_date'),
    )


class OrderItemModel(Base):
    __tablename__ = 'order_items'

    order_id = Column(
        Integer, ForeignKey('orders.order_id', ondelete='CASCADE'), primary_key=True, autoincrement=False
    )
    item_id = Column(Integer, primary_key=True, autoincrement=False)
    product_id = Column(Integer, ForeignKey('products.product_id'), nullable=False)
    quantity = Column(Integer, nullable=False)
    list_price = Column(Numeric(10, 2), nullable=False)
    discount = Column(Numeric(5, 2), nullable=False, default=0)

    order = relationship("OrderModel", back_populates="items")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='chk_items_quantity'),
        CheckConstraint('list_price > 0', name='chk_items_list_price'),
        CheckConstraint('discount >= 0 AND discount <= 1', name='chk_items_discount'),
        Index('idx_items_product', 'product_id'),
    )
