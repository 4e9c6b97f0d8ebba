"""Database models for directory data."""
from sqlalchemy import Column, Integer, String, Text, DateTime, Date, Float, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base


class Store(Base):
    """Model for storing a directory listing."""

    __tablename__ = "stores"

    # Slug derived from name + city, never changes after creation
    id = Column(String(255), primary_key=True)

    # Basic Information
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    categories = Column(JSON, nullable=False, default=list)  # list of category ids
    type = Column(String(50), nullable=False, default="brick-and-mortar")  # e.g. 'brick-and-mortar+online'
    logo = Column(String(500))

    # Contact Information
    website = Column(String(500))
    email = Column(String(255))
    phone = Column(String(50))
    instagram = Column(String(255))
    facebook = Column(String(255))
    twitter = Column(String(255))
    tiktok = Column(String(255))

    # Location
    address = Column(Text)
    city = Column(String(100), index=True)
    state = Column(String(50), index=True)
    country = Column(String(50), default="USA")
    postal_code = Column(String(20))
    lat = Column(Float)
    lng = Column(Float)

    # Flags
    offers_wholesale = Column(Boolean, default=False)
    offers_local_delivery = Column(Boolean, default=False)
    featured = Column(Boolean, default=False)

    # Lifecycle
    status = Column(String(20), nullable=False, default="active", index=True)  # 'active', 'needs-review', 'closed'
    source = Column(String(50))  # 'admin', 'csv-import', 'json-migration'
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_verified_at = Column(DateTime(timezone=True))

    locations = relationship(
        "StoreLocation",
        back_populates="store",
        order_by="StoreLocation.position",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Store(id='{self.id}', status='{self.status}')>"


class StoreLocation(Base):
    """Model for a secondary location of a store."""

    __tablename__ = "store_locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    store_id = Column(String(255), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    address = Column(Text)
    city = Column(String(100))
    state = Column(String(50))
    country = Column(String(50))
    postal_code = Column(String(20))
    lat = Column(Float)
    lng = Column(Float)
    phone = Column(String(50))

    store = relationship("Store", back_populates="locations")

    def __repr__(self):
        return f"<StoreLocation(store_id='{self.store_id}', city='{self.city}')>"


class Category(Base):
    """Model for the category reference table."""

    __tablename__ = "categories"

    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, default="")
    icon = Column(String(50), default="")

    def __repr__(self):
        return f"<Category(id='{self.id}')>"


class Sponsor(Base):
    """Model for promotional sponsors placed into page slots."""

    __tablename__ = "sponsors"

    id = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, default="")
    logo = Column(String(500))
    image = Column(String(500))
    video = Column(String(500))
    website = Column(String(500))
    cta = Column(String(255))

    placement = Column(JSON, nullable=False, default=list)  # slot names
    target_categories = Column(JSON, nullable=False, default=list)
    target_states = Column(JSON, nullable=False, default=list)

    start_date = Column(Date)
    end_date = Column(Date)
    is_active = Column(Boolean, default=True)

    def __repr__(self):
        return f"<Sponsor(name='{self.name}')>"
