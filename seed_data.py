from sqlmodel import Session, select
from app.db.session import engine as default_engine, create_db_and_tables
from app.models.product import Product

SEED_PRODUCTS = [
    dict(
        name="Brother CS7000X Computerized Sewing Machine",
        description="Lightweight computerized machine with 70 built-in stitches, automatic needle threader and wide table for quilting.",
        price=229.99,
        image_url="/images/brother-cs7000x.webp",
        category="computerized",
        brand="Brother",
        stock=25,
        rating=4.7,
        features=["70 built-in stitches", "Automatic needle threader", "Wide table"],
    ),
    dict(
        name="Singer Heavy Duty 4423",
        description="Mechanical heavy duty machine with a stainless steel bedplate and a motor built for denim and canvas.",
        price=189.00,
        image_url="/images/singer-4423.webp",
        category="mechanical",
        brand="Singer",
        stock=40,
        rating=4.5,
        features=["1100 stitches per minute", "Metal frame", "23 built-in stitches"],
    ),
    dict(
        name="Janome HD3000 Heavy Duty",
        description="All metal mechanical workhorse with a built-in one step buttonhole and hard cover.",
        price=449.00,
        image_url="/images/janome-hd3000.webp",
        category="mechanical",
        brand="Janome",
        stock=12,
        rating=4.8,
        features=["18 built-in stitches", "One step buttonhole", "Hard cover"],
    ),
    dict(
        name="Juki MO-654DE Serger",
        description="Portable 3/4 thread overlock serger with differential feed and color coded threading.",
        price=299.00,
        image_url="/images/juki-mo654de.webp",
        category="serger",
        brand="Juki",
        stock=8,
        rating=4.6,
        features=["Differential feed", "Color coded threading", "Rolled hem"],
    ),
    dict(
        name="Bernina 335 Sewing and Quilting Machine",
        description="Swiss made computerized machine with 97 stitches and a patchwork foot for precise piecing.",
        price=1799.00,
        image_url="/images/bernina-335.webp",
        category="quilting",
        brand="Bernina",
        stock=5,
        rating=4.9,
        features=["97 stitches", "Patchwork foot", "Free hand system"],
    ),
]

def seed_products(engine=None) -> int:
    """Insert the starter catalog if it is empty. Returns the number of products added."""
    engine = engine or default_engine
    print("Creating database and tables...")
    create_db_and_tables(engine)

    with Session(engine) as session:
        # Check if products already exist to avoid duplicates
        existing_products = session.exec(select(Product)).all()
        if existing_products:
            print(f"Database already contains {len(existing_products)} products. Skipping seed.")
            return 0

        print("Seeding initial products...")
        for data in SEED_PRODUCTS:
            session.add(Product(**data))

        session.commit()
        print(f"Successfully seeded {len(SEED_PRODUCTS)} products!")
        return len(SEED_PRODUCTS)

if __name__ == "__main__":
    seed_products()
