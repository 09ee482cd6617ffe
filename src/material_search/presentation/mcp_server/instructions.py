"""
MCP Server Instructions - usage guide for AI agents.
"""

from __future__ import annotations

SERVER_INSTRUCTIONS = """
Material Search MCP Server - raw material / cosmetic ingredient search

Two collections back every search:
- in_stock: materials currently in the warehouse (can be used or ordered now)
- full_catalog: every FDA-registered cosmetic ingredient (may need ordering)

═══════════════════════════════════════════════════════════════════════════════
🎯 Which tool?
═══════════════════════════════════════════════════════════════════════════════

1. Default: unified_material_search(query)
   Routes automatically and lists in-stock results first.
   "หาสารที่ช่วยความชุ่มชื้น", "recommend ingredients for ลดริ้วรอย"

2. "มี X ไหม?" / "Is X in stock?": check_material_availability(material)
   Returns stock details, or catalog alternatives when not in stock.

3. User explicitly wants one collection:
   search_in_stock(query) or search_full_catalog(query)

4. "สาร X ใช้ทำอะไรได้บ้าง" / "What is X used for?":
   get_material_profile(material)

5. "วัตถุดิบสำหรับเซรั่ม" / "actives for an eye cream":
   search_materials_by_usecase(usecase, benefit=None)

6. "ขออีก 5 สาร" / "show me more": repeat the previous call with
   offset=5 (or exclude_codes=<codes already shown>).

═══════════════════════════════════════════════════════════════════════════════
📋 Presenting results
═══════════════════════════════════════════════════════════════════════════════
- Show the markdown table as returned.
- Answer in the user's language (Thai by default).
- ✅ In Stock rows can be used immediately; 📚 FDA Database rows may need
  ordering from the supplier.
"""
