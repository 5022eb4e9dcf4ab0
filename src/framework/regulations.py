import json
from typing import List, Optional, Tuple
from pydantic import BaseModel


class Regulation(BaseModel):
    code: str
    name: str
    category: str
    keywords: List[str]
    thresholds: List[str]


# Codes with a dedicated compliance workflow in the product.
SUPPORTED_REGULATIONS = ("GDPR", "CSRD", "AI_ACT")


REGULATIONS: List[Regulation] = [
    # Data Protection & Privacy
    Regulation(
        code="GDPR",
        name="General Data Protection Regulation",
        category="data_protection",
        keywords=["personal data", "data processing", "privacy", "consent", "data transfer"],
        thresholds=["processes personal data", "EU data subjects"],
    ),
    Regulation(
        code="EPRIVACY",
        name="ePrivacy Directive",
        category="data_protection",
        keywords=["cookies", "electronic communications", "marketing", "tracking"],
        thresholds=["electronic communications", "cookies/tracking"],
    ),
    # Sustainability & Environment
    Regulation(
        code="CSRD",
        name="Corporate Sustainability Reporting Directive",
        category="sustainability",
        keywords=["sustainability reporting", "ESG", "environmental impact"],
        thresholds=["250+ employees OR €40M+ turnover OR €20M+ assets", "listed company"],
    ),
    Regulation(
        code="EU_TAXONOMY",
        name="EU Taxonomy for Sustainable Activities",
        category="sustainability",
        keywords=["sustainable finance", "green investments", "environmental objectives"],
        thresholds=["financial market participants", "large companies"],
    ),
    Regulation(
        code="EU_ETS",
        name="EU Emissions Trading System",
        category="environment",
        keywords=["carbon emissions", "greenhouse gas", "industrial installations"],
        thresholds=["20+ MW thermal capacity", "aviation operations"],
    ),
    Regulation(
        code="CBAM",
        name="Carbon Border Adjustment Mechanism",
        category="environment",
        keywords=["carbon imports", "steel", "cement", "fertilizers", "aluminum"],
        thresholds=["imports covered goods", "carbon-intensive imports"],
    ),
    # Artificial Intelligence
    Regulation(
        code="AI_ACT",
        name="AI Act",
        category="digital_technology",
        keywords=["artificial intelligence", "machine learning", "automated decision"],
        thresholds=["AI systems in EU market", "high-risk AI applications"],
    ),
    # Digital Services & Platforms
    Regulation(
        code="DSA",
        name="Digital Services Act",
        category="digital_platforms",
        keywords=["online platform", "content moderation", "illegal content"],
        thresholds=["digital services", "45M+ EU users (VLOP)"],
    ),
    Regulation(
        code="DMA",
        name="Digital Markets Act",
        category="digital_platforms",
        keywords=["gatekeeper", "core platform services", "market dominance"],
        thresholds=["€7.5B+ turnover OR €75B+ market cap", "45M+ monthly users"],
    ),
    # Financial Services
    Regulation(
        code="MIFID_II",
        name="Markets in Financial Instruments Directive II",
        category="financial_services",
        keywords=["investment services", "financial instruments", "trading"],
        thresholds=["investment firm", "financial services provider"],
    ),
    Regulation(
        code="PSD2",
        name="Payment Services Directive 2",
        category="financial_services",
        keywords=["payment services", "electronic payments", "banking"],
        thresholds=["payment service provider", "payment institution"],
    ),
    Regulation(
        code="MICA",
        name="Markets in Crypto-Assets Regulation",
        category="financial_services",
        keywords=["cryptocurrency", "digital assets", "crypto exchange"],
        thresholds=["crypto-asset services", "stablecoin issuance"],
    ),
    Regulation(
        code="SOLVENCY_II",
        name="Solvency II Directive",
        category="financial_services",
        keywords=["insurance", "reinsurance", "solvency requirements"],
        thresholds=["insurance undertaking", "reinsurance undertaking"],
    ),
    # Cybersecurity & Infrastructure
    Regulation(
        code="NIS2",
        name="Network and Information Security Directive 2",
        category="cybersecurity",
        keywords=["cybersecurity", "essential services", "digital infrastructure"],
        thresholds=["essential/important entities", "medium+ enterprises in covered sectors"],
    ),
    Regulation(
        code="CRA",
        name="Cyber Resilience Act",
        category="cybersecurity",
        keywords=["connected products", "IoT security", "cybersecurity requirements"],
        thresholds=["products with digital elements", "connected devices"],
    ),
    # Product Safety & Compliance
    Regulation(
        code="MACHINERY_DIRECTIVE",
        name="Machinery Directive",
        category="product_safety",
        keywords=["machinery", "equipment safety", "CE marking"],
        thresholds=["machinery placing on market"],
    ),
    Regulation(
        code="MEDICAL_DEVICE_REGULATION",
        name="Medical Device Regulation",
        category="product_safety",
        keywords=["medical devices", "healthcare products", "clinical evaluation"],
        thresholds=["medical device manufacturer/importer"],
    ),
    Regulation(
        code="ROHS",
        name="Restriction of Hazardous Substances Directive",
        category="product_safety",
        keywords=["electrical equipment", "hazardous substances", "electronics"],
        thresholds=["electrical and electronic equipment"],
    ),
    Regulation(
        code="WEEE",
        name="Waste Electrical and Electronic Equipment Directive",
        category="environment",
        keywords=["electronic waste", "electrical equipment", "recycling"],
        thresholds=["electrical equipment producer"],
    ),
    Regulation(
        code="BATTERY_REGULATION",
        name="Battery Regulation",
        category="environment",
        keywords=["batteries", "battery waste", "circular economy"],
        thresholds=["battery manufacturer/importer", "battery-containing products"],
    ),
    # Chemicals & Substances
    Regulation(
        code="REACH",
        name="Registration, Evaluation, Authorisation and Restriction of Chemicals",
        category="chemicals",
        keywords=["chemical substances", "chemical safety", "registration"],
        thresholds=["manufacture/import ≥1 tonne/year chemicals"],
    ),
    Regulation(
        code="CLP",
        name="Classification, Labelling and Packaging Regulation",
        category="chemicals",
        keywords=["chemical classification", "hazard labeling", "chemical mixtures"],
        thresholds=["chemical substance/mixture supplier"],
    ),
    # Employment & Workers
    Regulation(
        code="POSTED_WORKERS",
        name="Posted Workers Directive",
        category="employment",
        keywords=["cross-border workers", "posting workers", "labor mobility"],
        thresholds=["posting workers to other EU countries"],
    ),
    Regulation(
        code="WHISTLEBLOWER_PROTECTION",
        name="Whistleblower Protection Directive",
        category="employment",
        keywords=["whistleblowing", "reporting violations", "worker protection"],
        thresholds=["50+ employees in EU member state"],
    ),
    Regulation(
        code="WORK_LIFE_BALANCE",
        name="Work-Life Balance Directive",
        category="employment",
        keywords=["parental leave", "work-life balance", "family rights"],
        thresholds=["employers with workers"],
    ),
    # Consumer Protection
    Regulation(
        code="CONSUMER_RIGHTS",
        name="Consumer Rights Directive",
        category="consumer_protection",
        keywords=["consumer sales", "distance selling", "consumer contracts"],
        thresholds=["B2C sales", "consumer contracts"],
    ),
    Regulation(
        code="UNFAIR_COMMERCIAL_PRACTICES",
        name="Unfair Commercial Practices Directive",
        category="consumer_protection",
        keywords=["misleading advertising", "unfair practices", "consumer protection"],
        thresholds=["B2C commercial practices"],
    ),
    Regulation(
        code="GEOBLOCKING",
        name="Geo-blocking Regulation",
        category="consumer_protection",
        keywords=["geo-blocking", "cross-border access", "discrimination"],
        thresholds=["online services to consumers"],
    ),
    # Packaging & Waste
    Regulation(
        code="PACKAGING_WASTE",
        name="Packaging and Packaging Waste Directive",
        category="environment",
        keywords=["packaging", "packaging waste", "producer responsibility"],
        thresholds=["packaging on EU market"],
    ),
    Regulation(
        code="SINGLE_USE_PLASTICS",
        name="Single-Use Plastics Directive",
        category="environment",
        keywords=["single-use plastics", "plastic pollution", "circular economy"],
        thresholds=["single-use plastic products"],
    ),
    # Transport & Mobility
    Regulation(
        code="TRANSPORT_PASSENGER_RIGHTS",
        name="Transport Passenger Rights Regulations",
        category="transport",
        keywords=["passenger rights", "transport services", "compensation"],
        thresholds=["transport service provider"],
    ),
    # Energy
    Regulation(
        code="ENERGY_EFFICIENCY",
        name="Energy Efficiency Directive",
        category="energy",
        keywords=["energy efficiency", "energy consumption", "energy audits"],
        thresholds=["large enterprises", "energy-intensive companies"],
    ),
    Regulation(
        code="RENEWABLE_ENERGY",
        name="Renewable Energy Directive",
        category="energy",
        keywords=["renewable energy", "green energy", "sustainability"],
        thresholds=["energy suppliers", "large energy consumers"],
    ),
    # Trade & Customs
    Regulation(
        code="CUSTOMS_CODE",
        name="Union Customs Code",
        category="trade",
        keywords=["customs", "import", "export", "international trade"],
        thresholds=["import/export activities"],
    ),
    Regulation(
        code="DUAL_USE_REGULATION",
        name="Dual-Use Export Regulation",
        category="trade",
        keywords=["dual-use items", "export controls", "strategic goods"],
        thresholds=["dual-use items export"],
    ),
]


def get_regulation_by_code(code: str) -> Optional[Regulation]:
    for r in REGULATIONS:
        if r.code == code:
            return r
    return None


def get_regulations_by_category(category: str) -> List[Regulation]:
    return [r for r in REGULATIONS if r.category == category]


def partition_regulations(
    codes: List[str],
    supported: Tuple[str, ...] = SUPPORTED_REGULATIONS,
) -> Tuple[List[str], List[str]]:
    """Split codes into (supported, unsupported), preserving input order."""
    return (
        [c for c in codes if c in supported],
        [c for c in codes if c not in supported],
    )


def serialize_catalog() -> str:
    """Catalog as pretty-printed JSON keyed by code, for embedding in the analysis prompt."""
    catalog = {
        r.code: r.model_dump(exclude={"code"})
        for r in REGULATIONS
    }
    return json.dumps(catalog, indent=2, ensure_ascii=False)
