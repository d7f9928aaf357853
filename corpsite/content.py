"""
Static marketing content for the public pages.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

COMPANY = "AKACorpTech"
PHONE = "+91 7678245132"
WHATSAPP_NUMBER = "917678245132"
EMAIL = "info@akacorptech.com"
LOCATION = "Noida, Uttar Pradesh, India"
MAP_URL = "https://maps.google.com/?q=Noida,Uttar+Pradesh,India"
PLACEHOLDER_IMAGE = "/api/placeholder/600/400"


@dataclass(frozen=True)
class Service:
    slug: str
    title: str
    short_title: str
    description: str
    features: tuple[str, ...]
    price: str

    def as_dict(self) -> dict:
        data = asdict(self)
        data["features"] = list(self.features)
        data["href"] = f"/services/{self.slug}"
        return data


@dataclass(frozen=True)
class Project:
    title: str
    description: str
    category: str
    technologies: tuple[str, ...]
    link: Optional[str] = None
    image: str = PLACEHOLDER_IMAGE

    def as_dict(self) -> dict:
        data = asdict(self)
        data["technologies"] = list(self.technologies)
        return data


@dataclass(frozen=True)
class NavItem:
    href: str
    label: str
    children: tuple["NavItem", ...] = field(default_factory=tuple)

    def as_dict(self) -> dict:
        data = {"href": self.href, "label": self.label}
        if self.children:
            data["children"] = [child.as_dict() for child in self.children]
        return data


SERVICES: tuple[Service, ...] = (
    Service(
        "custom-software",
        "Custom Software Development",
        "Custom Software",
        "Build enterprise-grade systems tailored to your business needs with cutting-edge technology.",
        ("Enterprise Solutions", "Scalable Architecture", "Custom APIs", "Integration Services"),
        "Starting from ₹2,50,000",
    ),
    Service(
        "web-development",
        "Web Development",
        "Web Development",
        "Modern, responsive websites that drive engagement and conversions.",
        ("Responsive Design", "SEO Optimized", "Fast Loading", "CMS Integration"),
        "Starting from ₹75,000",
    ),
    Service(
        "mobile-apps",
        "Mobile App Development",
        "Mobile Apps",
        "Native and cross-platform mobile solutions for iOS and Android.",
        ("iOS & Android", "Cross-Platform", "App Store Deployment", "Maintenance"),
        "Starting from ₹1,50,000",
    ),
    Service(
        "cloud-devops",
        "Cloud & DevOps",
        "Cloud & DevOps",
        "Scalable cloud infrastructure and seamless deployment pipelines.",
        ("AWS/Azure/GCP", "CI/CD Pipelines", "Monitoring", "Auto-scaling"),
        "Starting from ₹50,000",
    ),
    Service(
        "cybersecurity",
        "Cybersecurity",
        "Cybersecurity",
        "Comprehensive security solutions to protect your digital assets.",
        ("Security Audits", "Penetration Testing", "Compliance", "24/7 Monitoring"),
        "Starting from ₹1,00,000",
    ),
    Service(
        "digital-marketing",
        "Digital Marketing",
        "Digital Marketing",
        "Data-driven marketing strategies that amplify your brand reach.",
        ("SEO/SEM", "Social Media", "Analytics", "Content Strategy"),
        "Starting from ₹25,000/month",
    ),
    Service(
        "emerging-tech",
        "AI & Blockchain",
        "Emerging Tech",
        "Leverage cutting-edge tech for innovative solutions and competitive advantage.",
        ("Machine Learning", "Smart Contracts", "Data Analytics", "Automation"),
        "Starting from ₹3,00,000",
    ),
)

PROJECTS: tuple[Project, ...] = (
    Project(
        "Stock Strategix",
        "Advanced stock market analysis platform with real-time data visualization and AI-powered trading insights.",
        "Website Design",
        ("React", "Python", "TensorFlow", "WebSocket"),
        "https://stockstrategix.com",
    ),
    Project(
        "Crush Car",
        "Comprehensive automotive marketplace with advanced search, comparison tools, and dealer management system.",
        "Website Development",
        ("Next.js", "Node.js", "PostgreSQL", "Stripe"),
        "https://crushcar.in",
    ),
    Project(
        "B2B International",
        "Enterprise-grade B2B trading platform with multi-currency support, logistics tracking, and automated workflows.",
        "Software Development",
        ("Vue.js", "Laravel", "Redis", "Docker"),
        "https://b2binternational.com",
    ),
    Project(
        "E-Commerce Platform",
        "Full-featured e-commerce solution with inventory management, payment processing, and analytics.",
        "Web Application",
        ("React", "Node.js", "MongoDB", "AWS"),
    ),
    Project(
        "Mobile Banking App",
        "Secure mobile banking application with biometric authentication and real-time transactions.",
        "Mobile App",
        ("React Native", "Node.js", "PostgreSQL", "AWS"),
    ),
    Project(
        "AI Chatbot Platform",
        "Intelligent chatbot platform with natural language processing and machine learning capabilities.",
        "AI/ML",
        ("Python", "TensorFlow", "React", "FastAPI"),
    ),
)

STATS = (
    {"number": "50+", "label": "Projects Completed"},
    {"number": "100%", "label": "Client Satisfaction"},
    {"number": "24/7", "label": "Support Available"},
    {"number": "5+", "label": "Years Experience"},
)

NAVIGATION: tuple[NavItem, ...] = (
    NavItem("/", "Home"),
    NavItem("/about", "About"),
    NavItem(
        "/services",
        "Services",
        tuple(NavItem(f"/services/{s.slug}", s.short_title) for s in SERVICES),
    ),
    NavItem("/portfolio", "Portfolio"),
    NavItem("/blog", "Blog"),
    NavItem("/contact", "Contact"),
    NavItem("/auth", "Admin"),
)

SOCIAL_LINKS = (
    {"label": "Facebook", "href": "https://facebook.com/akacorptech"},
    {"label": "LinkedIn", "href": "https://linkedin.com/company/akacorptech"},
    {"label": "Instagram", "href": "https://instagram.com/akacorptech"},
    {"label": "Twitter", "href": "https://twitter.com/akacorptech"},
)


def whatsapp_link(message: str) -> str:
    return f"https://wa.me/{WHATSAPP_NUMBER}?text={quote(message, safe='')}"


def contact_whatsapp_link(name: Optional[str] = None) -> str:
    who = name or "interested in your services"
    return whatsapp_link(
        f"Hi, I'm {who}. I would like to discuss a project with you."
    )


def get_service(slug: str) -> Optional[Service]:
    for service in SERVICES:
        if service.slug == slug:
            return service
    return None


def navigation() -> list[dict]:
    return [item.as_dict() for item in NAVIGATION]


def footer(now: Optional[datetime] = None) -> dict:
    year = (now or datetime.now(timezone.utc)).year
    return {
        "company": COMPANY,
        "contact": {
            "phone": PHONE,
            "email": EMAIL,
            "location": LOCATION,
            "map_url": MAP_URL,
        },
        "quick_links": [
            item.as_dict() for item in NAVIGATION if item.href not in ("/auth",)
        ],
        "services": [
            {"href": f"/services/{s.slug}", "label": s.short_title}
            for s in SERVICES
            if s.slug != "emerging-tech"
        ],
        "social": list(SOCIAL_LINKS),
        "copyright": f"© {year} {COMPANY}. All rights reserved.",
    }


def layout() -> dict:
    return {"navigation": navigation(), "footer": footer()}


def home_page() -> dict:
    return {
        "hero": {
            "headline": "Modern Software Solutions",
            "tagline": "Transforming businesses with custom software, AI solutions, and digital innovation.",
            "primary_action": {"label": "Get Started", "href": "/contact"},
            "consultation_url": whatsapp_link(
                "Hi, I would like a free consultation"
            ),
            "highlights": [
                {"number": "50+", "label": "Projects Delivered"},
                {"number": "100%", "label": "Client Satisfaction"},
                {"number": "24/7", "label": "Support"},
            ],
        },
        "services": [
            {**s.as_dict(), "title": s.short_title} for s in SERVICES
        ],
        "portfolio": [p.as_dict() for p in PROJECTS[:3]],
    }


def about_page() -> dict:
    return {
        "title": f"About {COMPANY}",
        "subtitle": "Transforming businesses through innovative technology solutions",
        "who_we_are": [
            f"{COMPANY} is a leading IT services company based in Noida, specializing in "
            "custom software development, web applications, mobile apps, and emerging "
            "technologies like AI and blockchain.",
            "Our team of expert developers and designers work tirelessly to deliver "
            "cutting-edge solutions that drive digital transformation for businesses "
            "of all sizes.",
        ],
        "contact_url": whatsapp_link(f"Hi, I want to know more about {COMPANY}"),
        "stats": list(STATS),
    }


def services_page() -> dict:
    return {"services": [s.as_dict() for s in SERVICES]}


def portfolio_page() -> dict:
    return {
        "projects": [p.as_dict() for p in PROJECTS],
        "categories": sorted({p.category for p in PROJECTS}),
    }


def contact_page() -> dict:
    return {
        "title": "Contact Us",
        "subtitle": "Let's discuss your project and bring your ideas to life",
        "form": {
            "fields": ["name", "email", "subject", "message"],
            "required": ["name", "email", "subject", "message"],
            "action": "/contact",
        },
        "details": {"phone": PHONE, "email": EMAIL, "location": LOCATION},
        "whatsapp_url": contact_whatsapp_link(),
    }
