from typing import List, Optional

from src.models.assessment import Question, QuestionSection


QUESTION_SECTIONS: List[QuestionSection] = [
    QuestionSection(
        section="Company Profile",
        questions=[
            Question(
                id="company-employees",
                text="How many employees does your company have (including subsidiaries)?",
                type="number",
                answer_type="integer",
            ),
            Question(
                id="company-turnover",
                text="What was your company's net annual turnover in the last financial year?",
                type="currency",
                answer_type="string",
                help_text="e.g., €40 million",
            ),
            Question(
                id="company-balance-sheet",
                text="What is your company's total balance sheet (assets)?",
                type="currency",
                answer_type="string",
            ),
            Question(
                id="company-listed",
                text="Are your securities listed on an EU regulated market?",
                type="boolean",
                answer_type="boolean",
            ),
            Question(
                id="company-sectors",
                text="Which sectors does your company operate in?",
                type="multi",
                answer_type="list",
                help_text="e.g., financial services, healthcare, manufacturing, energy",
            ),
        ],
    ),
    QuestionSection(
        section="Data Protection & Privacy",
        questions=[
            Question(
                id="gdpr-scope",
                text="Do you process personal data of individuals located in the EU?",
                type="boolean",
                answer_type="boolean",
            ),
            Question(
                id="gdpr-special",
                text="Do you process special categories of personal data (health, biometric, political, religious)?",
                type="boolean",
                answer_type="boolean",
            ),
            Question(
                id="gdpr-transfers",
                text="Do you transfer personal data outside the European Economic Area?",
                type="boolean",
                answer_type="boolean",
            ),
            Question(
                id="eprivacy-marketing",
                text="Do you use cookies, tracking technologies or electronic direct marketing?",
                type="boolean",
                answer_type="boolean",
            ),
        ],
    ),
    QuestionSection(
        section="Sustainability Reporting",
        questions=[
            Question(
                id="csrd-thresholds",
                text="Does your company exceed two of: 250 employees, €40M turnover, €20M total assets?",
                type="boolean",
                answer_type="boolean",
            ),
            Question(
                id="csrd-non-eu",
                text="Are you a non-EU parent with more than €150M EU turnover and an EU subsidiary or branch?",
                type="boolean",
                answer_type="boolean",
            ),
            Question(
                id="csrd-consolidated",
                text="Are you the parent of a large group that prepares consolidated financial statements?",
                type="boolean",
                answer_type="boolean",
            ),
        ],
    ),
    QuestionSection(
        section="Artificial Intelligence",
        questions=[
            Question(
                id="aia-deploy",
                text="Do you develop, deploy or place AI systems on the EU market?",
                type="boolean",
                answer_type="boolean",
            ),
            Question(
                id="aia-highrisk",
                text="Are any of your AI systems used in high-risk areas (employment, credit scoring, education, critical infrastructure, law enforcement)?",
                type="boolean",
                answer_type="boolean",
            ),
            Question(
                id="aia-transparency",
                text="Do your AI systems interact directly with people or generate synthetic content (chatbots, deepfakes)?",
                type="boolean",
                answer_type="boolean",
            ),
        ],
    ),
    QuestionSection(
        section="Operations & Products",
        questions=[
            Question(
                id="ops-digital-services",
                text="Do you provide online platforms, marketplaces or hosting services to EU users?",
                type="boolean",
                answer_type="boolean",
            ),
            Question(
                id="ops-critical-infrastructure",
                text="Do you operate in energy, transport, banking, health, water or digital infrastructure?",
                type="boolean",
                answer_type="boolean",
            ),
            Question(
                id="ops-connected-products",
                text="Do you manufacture or import products with digital elements (IoT, connected devices, software)?",
                type="boolean",
                answer_type="boolean",
            ),
            Question(
                id="ops-payments",
                text="Do you provide payment, investment or crypto-asset services?",
                type="boolean",
                answer_type="boolean",
            ),
            Question(
                id="ops-imports",
                text="Which goods do you import into the EU, if any?",
                type="text",
                answer_type="string",
                help_text="e.g., steel, cement, batteries, electronics",
            ),
        ],
    ),
]


def get_question_by_id(question_id: str) -> Optional[Question]:
    for section in QUESTION_SECTIONS:
        for q in section.questions:
            if q.id == question_id:
                return q
    return None
