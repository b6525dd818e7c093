"""Database seeder for Toolcrib — a small cutting-tools catalog with demo tools.

Run via: python -m toolcrib.seed
"""

import asyncio
import uuid

from toolcrib.database.engine import async_session, engine
from toolcrib.models.enums import AttributeType, UserRole
from toolcrib.modules.auth.auth import AuthenticatedUser
from toolcrib.modules.catalog.attribute_group_service import AttributeGroupService
from toolcrib.modules.catalog.attribute_service import AttributeService
from toolcrib.modules.catalog.category_service import CategoryService
from toolcrib.modules.catalog.schemas import (
    AttributeDefinitionCreate,
    AttributeGroupCreate,
    AttributeOption,
    CategoryCreate,
)
from toolcrib.modules.tool.schemas import ToolCreate
from toolcrib.modules.tool.service import ToolService

SEED_USER = AuthenticatedUser(id=uuid.UUID(int=1), email="admin@toolcrib.local", role=UserRole.ADMIN)

# (group name, sort order)
CUTTING_TOOL_GROUPS: list[tuple[str, int]] = [
    ("Physical Properties", 1),
    ("Performance Metrics", 2),
]

# group name -> attribute definitions
CUTTING_TOOL_ATTRIBUTES: dict[str, list[dict]] = {
    "Physical Properties": [
        {
            "name": "diameter",
            "label": "Diameter",
            "attribute_type": AttributeType.NUMBER,
            "is_required": True,
            "validation_rules": {"min": 0.1, "max": 100, "step": 0.1},
            "sort_order": 1,
            "tooltip": "Diameter of the tool in mm",
        },
        {
            "name": "length",
            "label": "Length",
            "attribute_type": AttributeType.NUMBER,
            "is_required": True,
            "validation_rules": {"min": 1, "max": 500, "step": 0.1},
            "sort_order": 2,
            "tooltip": "Length of the tool in mm",
        },
    ],
    "Performance Metrics": [
        {
            "name": "material",
            "label": "Material",
            "attribute_type": AttributeType.SELECT_SINGLE,
            "is_required": True,
            "options": [
                ("hss", "High Speed Steel"),
                ("carbide", "Carbide"),
                ("diamond", "Diamond"),
                ("ceramic", "Ceramic"),
            ],
            "sort_order": 1,
            "tooltip": "Material of the cutting tool",
        },
        {
            "name": "coating",
            "label": "Coating",
            "attribute_type": AttributeType.SELECT_MULTI,
            "is_required": False,
            "options": [
                ("tin", "Titanium Nitride (TiN)"),
                ("ticn", "Titanium Carbonitride (TiCN)"),
                ("tialn", "Titanium Aluminum Nitride (TiAlN)"),
                ("none", "None"),
            ],
            "sort_order": 2,
            "tooltip": "Coating applied to the tool",
        },
    ],
}

END_MILLS: list[dict] = [
    {
        "name": '1/4" 4-Flute Carbide End Mill',
        "description": "General purpose end mill for aluminum and steel",
        "quantity": 15,
        "custom_attributes": {"diameter": 6.3, "length": 50, "material": "carbide", "coating": ["tin"]},
    },
    {
        "name": '1/2" 2-Flute Carbide End Mill',
        "description": "Heavy duty end mill for roughing operations",
        "quantity": 8,
        "custom_attributes": {"diameter": 12.7, "length": 75, "material": "carbide", "coating": ["tialn"]},
    },
    {
        "name": '3/8" 3-Flute HSS End Mill',
        "description": "Economic option for non-critical applications",
        "quantity": 20,
        "custom_attributes": {"diameter": 9.5, "length": 63, "material": "hss", "coating": ["none"]},
    },
]


async def seed_catalog(session) -> uuid.UUID:
    """Create Cutting Tools with its groups and attributes, plus End Mills under it."""
    categories = CategoryService(session)
    groups = AttributeGroupService(session)
    attributes = AttributeService(session)

    cutting_tools = await categories.create_category(
        CategoryCreate(name="Cutting Tools", description="Tools used for cutting operations")
    )
    for group_name, sort_order in CUTTING_TOOL_GROUPS:
        group = await groups.create_group(
            cutting_tools.id, AttributeGroupCreate(name=group_name, sort_order=sort_order)
        )
        for attribute in CUTTING_TOOL_ATTRIBUTES[group_name]:
            options = [AttributeOption(value=v, label=label) for v, label in attribute.get("options", [])]
            await attributes.create_attribute(
                cutting_tools.id,
                AttributeDefinitionCreate(
                    **{k: v for k, v in attribute.items() if k != "options"},
                    attribute_group_id=group.id,
                    options=options or None,
                    is_filterable=True,
                    is_searchable=True,
                ),
            )

    end_mills = await categories.create_category(
        CategoryCreate(
            name="End Mills",
            description="Cutting tools used for milling operations",
            parent_id=cutting_tools.id,
        )
    )
    return end_mills.id


async def seed_tools(session, category_id: uuid.UUID) -> None:
    tools = ToolService(session)
    for tool in END_MILLS:
        await tools.create_tool(ToolCreate(category_id=category_id, **tool), SEED_USER)


async def main() -> None:
    """Run all seed functions inside a single transaction."""
    print("Seeding Toolcrib database...")

    async with async_session() as session:
        async with session.begin():
            end_mills_id = await seed_catalog(session)
            await seed_tools(session, end_mills_id)

    await engine.dispose()
    print(f"Seeded catalog and {len(END_MILLS)} tools.")


if __name__ == "__main__":
    asyncio.run(main())
