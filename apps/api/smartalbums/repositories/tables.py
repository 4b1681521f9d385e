from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, MetaData, String, Table, func

# Single source of truth for table objects
metadata = MetaData()

assets = Table("assets", metadata,
    Column("asset_id", String, primary_key=True),
    Column("owner_id", String, nullable=False, index=True),
    Column("library_id", String),
    Column("device_id", String),
    Column("type", String, nullable=False, default="IMAGE"),
    Column("is_archived", Boolean, nullable=False, default=False),
    Column("is_favorite", Boolean, nullable=False, default=False),
    Column("is_motion", Boolean, nullable=False, default=False),
    Column("is_offline", Boolean, nullable=False, default=False),
    Column("is_external", Boolean, nullable=False, default=False),
    Column("is_encoded", Boolean, nullable=False, default=False),
    Column("is_read_only", Boolean, nullable=False, default=False),
    Column("is_visible", Boolean, nullable=False, default=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("deleted_at", DateTime(timezone=True)),
    Column("taken_at", DateTime(timezone=True)),
)

exif = Table("exif", metadata,
    Column("asset_id", String, ForeignKey("assets.asset_id", ondelete="CASCADE"), primary_key=True),
    Column("city", String),
    Column("state", String),
    Column("country", String),
    Column("make", String),
    Column("model", String),
    Column("lens_model", String),
)

people = Table("people", metadata,
    Column("person_id", String, primary_key=True),
    Column("owner_id", String, nullable=False),
    Column("name", String, nullable=False, default=""),
)

faces = Table("faces", metadata,
    Column("face_id", String, primary_key=True),
    Column("asset_id", String, ForeignKey("assets.asset_id", ondelete="CASCADE"), nullable=False, index=True),
    Column("person_id", String, ForeignKey("people.person_id", ondelete="SET NULL"), index=True),
)

embeddings = Table("embeddings", metadata,
    Column("asset_id", String, ForeignKey("assets.asset_id", ondelete="CASCADE"), primary_key=True),
    Column("embedding", JSON, nullable=False),  # list of floats
)

albums = Table("albums", metadata,
    Column("album_id", String, primary_key=True),
    Column("owner_id", String, nullable=False, index=True),
    Column("album_name", String, nullable=False, default="Untitled Album"),
    Column("thumbnail_asset_id", String, ForeignKey("assets.asset_id", ondelete="SET NULL")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("smart_search", JSON(none_as_null=True)),  # persisted SearchSpecification, removed with the album row
)

albums_assets = Table("albums_assets", metadata,
    Column("album_id", String, ForeignKey("albums.album_id", ondelete="CASCADE"), primary_key=True),
    Column("asset_id", String, ForeignKey("assets.asset_id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
