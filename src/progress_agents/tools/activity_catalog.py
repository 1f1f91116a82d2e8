"""
Recommendation Engine Tool: Activity Catalog
Static catalog of developmental activity templates.

Each template targets one or more learner-profile attributes, is eligible
for a set of age groups, and carries the material the later stages need:
benefits and costs for the recommendation, search keywords for venue
lookup, and home activities with tips for parent actions.

Catalog order matters: when several templates fit an attribute, earlier
templates are chosen first.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from progress_agents.config.constants import (
    EARLY_YEARS_MAX_GRADE,
    PRIMARY_LOWER_MAX_GRADE,
    PRIMARY_UPPER_MAX_GRADE,
)


# ---------------------------------------------------------------------------
# Age groups & categories
# ---------------------------------------------------------------------------

EARLY_YEARS = "early-years"
PRIMARY_LOWER = "primary-lower"
PRIMARY_UPPER = "primary-upper"
MIDDLE = "middle"
ALL_AGE_GROUPS = (EARLY_YEARS, PRIMARY_LOWER, PRIMARY_UPPER, MIDDLE)

PHYSICAL = "Physical Development"
CULTURAL = "Cultural Exposure"
STEM = "STEM & Inquiry"
MINDFULNESS = "Mindfulness & Reflection"
CREATIVE = "Creative Expression"
LEADERSHIP = "Leadership & Character"

CORE_CATEGORIES = (PHYSICAL, CULTURAL, STEM)
"""Categories every young child should see at least once"""


def age_group_for(grade_number: int) -> str:
    if grade_number <= EARLY_YEARS_MAX_GRADE:
        return EARLY_YEARS
    if grade_number <= PRIMARY_LOWER_MAX_GRADE:
        return PRIMARY_LOWER
    if grade_number <= PRIMARY_UPPER_MAX_GRADE:
        return PRIMARY_UPPER
    return MIDDLE


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class HomeActivityTemplate(BaseModel):
    activity: str
    frequency: str
    duration: str
    tips: list[str] = Field(..., min_length=1)


class ActivityTemplate(BaseModel):
    id: str
    name: str
    category: str
    target_attributes: list[str] = Field(..., min_length=1)
    age_groups: tuple[str, ...] = ALL_AGE_GROUPS
    description: str
    benefits: list[str]
    frequency: str
    estimated_cost: str
    why_recommended: str
    search_keywords: list[str] = Field(default_factory=list)
    home_activities: list[HomeActivityTemplate] = Field(default_factory=list)

    def eligible_for(self, age_group: str) -> bool:
        return age_group in self.age_groups


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

ACTIVITY_TEMPLATES: tuple[ActivityTemplate, ...] = (
    # --- Physical Development ---
    ActivityTemplate(
        id="gymnastics",
        name="Gymnastics/Tumbling Program",
        category=PHYSICAL,
        target_attributes=["Balanced", "Risk-taker"],
        age_groups=(EARLY_YEARS, PRIMARY_LOWER, PRIMARY_UPPER),
        description="Structured tumbling, balance and coordination classes in a safe, padded setting.",
        benefits=["Gross motor skills", "Body awareness", "Confidence with new movements"],
        frequency="1-2 times per week",
        estimated_cost="$60-120/month",
        why_recommended="Builds physical confidence and willingness to attempt new challenges.",
        search_keywords=["gymnastics"],
        home_activities=[
            HomeActivityTemplate(
                activity="Living-room obstacle course",
                frequency="2-3 times per week",
                duration="15-20 minutes",
                tips=["Use cushions and chairs for safe climbing", "Let the child design the next course"],
            ),
        ],
    ),
    ActivityTemplate(
        id="swimming",
        name="Swimming Lessons",
        category=PHYSICAL,
        target_attributes=["Balanced", "Risk-taker"],
        description="Progressive water-confidence and stroke lessons with small class sizes.",
        benefits=["Water safety", "Cardiovascular fitness", "Overcoming fears step by step"],
        frequency="Once per week",
        estimated_cost="$80-150/month",
        why_recommended="A safe way to practise courage while building a life skill.",
        search_keywords=["swimming"],
        home_activities=[
            HomeActivityTemplate(
                activity="Bath-time or pool water play",
                frequency="Weekly",
                duration="20 minutes",
                tips=["Practise blowing bubbles and floating", "Celebrate small brave steps"],
            ),
        ],
    ),
    ActivityTemplate(
        id="multi-sport",
        name="Multi-Sport Introduction",
        category=PHYSICAL,
        target_attributes=["Balanced", "Principled"],
        age_groups=(EARLY_YEARS, PRIMARY_LOWER),
        description="Rotating ball games, running and team play that introduce rules and turn-taking.",
        benefits=["Coordination", "Following rules", "Team play"],
        frequency="Once per week",
        estimated_cost="$50-100/month",
        why_recommended="Introduces fair play and varied movement before specialising.",
        search_keywords=["sports"],
        home_activities=[
            HomeActivityTemplate(
                activity="Backyard or park ball games",
                frequency="2 times per week",
                duration="20-30 minutes",
                tips=["Agree the rules together before starting", "Take turns being the referee"],
            ),
        ],
    ),
    # --- Cultural Exposure ---
    ActivityTemplate(
        id="world-music",
        name="World Music & Movement",
        category=CULTURAL,
        target_attributes=["Open-minded", "Communicator"],
        age_groups=(EARLY_YEARS, PRIMARY_LOWER, PRIMARY_UPPER),
        description="Songs, rhythm and dance from different cultures with simple instruments.",
        benefits=["Cultural awareness", "Listening skills", "Self-expression"],
        frequency="Once per week",
        estimated_cost="$40-90/month",
        why_recommended="Connects curiosity about other cultures with joyful expression.",
        search_keywords=["music"],
        home_activities=[
            HomeActivityTemplate(
                activity="Family world-music evening",
                frequency="Weekly",
                duration="20 minutes",
                tips=["Pick a country each week and find one song", "Dance or clap along together"],
            ),
        ],
    ),
    ActivityTemplate(
        id="language-immersion",
        name="Language Immersion Class",
        category=CULTURAL,
        target_attributes=["Communicator", "Open-minded"],
        description="Play-based sessions in a second language led by native speakers.",
        benefits=["Vocabulary growth", "Listening comprehension", "Appreciation of other cultures"],
        frequency="1-2 times per week",
        estimated_cost="$70-140/month",
        why_recommended="Gives many low-pressure chances to express ideas and listen closely.",
        search_keywords=["language"],
        home_activities=[
            HomeActivityTemplate(
                activity="Picture-book read-aloud in another language",
                frequency="2-3 times per week",
                duration="10-15 minutes",
                tips=["Point and name objects together", "Praise attempts, not accuracy"],
            ),
        ],
    ),
    ActivityTemplate(
        id="cultural-storytelling",
        name="Cultural Storytelling & Arts",
        category=CULTURAL,
        target_attributes=["Open-minded", "Communicator", "Reflective"],
        age_groups=(EARLY_YEARS, PRIMARY_LOWER),
        description="Folk tales from around the world followed by related crafts and retelling.",
        benefits=["Narrative skills", "Empathy for other perspectives", "Fine motor skills"],
        frequency="Once per week",
        estimated_cost="$30-70/month",
        why_recommended="Stories invite the child to retell, question and connect to other lives.",
        search_keywords=["storytelling"],
        home_activities=[
            HomeActivityTemplate(
                activity="Bedtime story retelling",
                frequency="Daily",
                duration="10 minutes",
                tips=["Ask how a character might feel", "Let the child change the ending"],
            ),
        ],
    ),
    # --- STEM & Inquiry ---
    ActivityTemplate(
        id="science-club",
        name="Science Exploration Club",
        category=STEM,
        target_attributes=["Inquirer", "Thinker", "Knowledgeable"],
        description="Hands-on experiments that start from children's own questions.",
        benefits=["Questioning skills", "Cause-and-effect reasoning", "Scientific vocabulary"],
        frequency="Once per week",
        estimated_cost="$60-120/month",
        why_recommended="Turns curiosity into structured investigation.",
        search_keywords=["science"],
        home_activities=[
            HomeActivityTemplate(
                activity="Kitchen science experiment",
                frequency="Weekly",
                duration="20-30 minutes",
                tips=["Ask 'what do you think will happen?' first", "Write or draw the result together"],
            ),
        ],
    ),
    ActivityTemplate(
        id="nature-exploration",
        name="Nature & Outdoor Exploration",
        category=STEM,
        target_attributes=["Inquirer", "Balanced", "Caring"],
        description="Guided outdoor sessions observing plants, animals and seasons.",
        benefits=["Observation skills", "Physical activity", "Care for the environment"],
        frequency="Weekly or bi-weekly",
        estimated_cost="$20-60/month",
        why_recommended="Combines open-ended inquiry with movement and care for living things.",
        search_keywords=["nature"],
        home_activities=[
            HomeActivityTemplate(
                activity="Nature walk with a collection bag",
                frequency="Weekly",
                duration="30-45 minutes",
                tips=["Let the child lead the route", "Sort the finds by colour or shape at home"],
            ),
        ],
    ),
    ActivityTemplate(
        id="building-engineering",
        name="Building & Engineering for Kids",
        category=STEM,
        target_attributes=["Thinker", "Risk-taker"],
        age_groups=(EARLY_YEARS, PRIMARY_LOWER, PRIMARY_UPPER),
        description="Construction challenges with blocks, LEGO and simple machines.",
        benefits=["Spatial reasoning", "Persistence", "Learning from failed attempts"],
        frequency="Once per week",
        estimated_cost="$60-110/month",
        why_recommended="Rewards trying, testing and improving ideas.",
        search_keywords=["engineering"],
        home_activities=[
            HomeActivityTemplate(
                activity="Build-the-tallest-tower challenge",
                frequency="2 times per week",
                duration="20 minutes",
                tips=["Praise strategies rather than results", "Ask what they would change next time"],
            ),
        ],
    ),
    # --- Mindfulness & Reflection ---
    ActivityTemplate(
        id="kids-yoga",
        name="Kids Yoga & Mindfulness",
        category=MINDFULNESS,
        target_attributes=["Reflective", "Balanced", "Principled"],
        description="Playful poses, breathing games and calm-down routines.",
        benefits=["Self-regulation", "Body awareness", "Focus"],
        frequency="Once per week",
        estimated_cost="$40-80/month",
        why_recommended="Builds the pause-and-notice habit that underpins reflection and self-control.",
        search_keywords=["yoga"],
        home_activities=[
            HomeActivityTemplate(
                activity="Bedtime breathing routine",
                frequency="Daily",
                duration="5 minutes",
                tips=["Use 'smell the flower, blow the candle' breaths", "Keep the routine at the same time each day"],
            ),
        ],
    ),
    ActivityTemplate(
        id="art-therapy",
        name="Art Therapy / Expressive Arts",
        category=MINDFULNESS,
        target_attributes=["Reflective", "Communicator", "Caring"],
        description="Open-ended art making focused on expressing feelings and experiences.",
        benefits=["Emotional vocabulary", "Self-expression", "Empathy"],
        frequency="Once per week",
        estimated_cost="$50-120/month",
        why_recommended="Offers a non-verbal route to talk about feelings and experiences.",
        search_keywords=["art"],
        home_activities=[
            HomeActivityTemplate(
                activity="Feelings drawing journal",
                frequency="2-3 times per week",
                duration="15 minutes",
                tips=["Ask the child to tell you about the picture", "Avoid judging or correcting the art"],
            ),
        ],
    ),
    # --- Creative Expression ---
    ActivityTemplate(
        id="creative-drama",
        name="Creative Drama / Theater Arts",
        category=CREATIVE,
        target_attributes=["Communicator", "Risk-taker", "Caring"],
        description="Role play, improvisation and small performances.",
        benefits=["Confident speaking", "Perspective taking", "Collaboration"],
        frequency="Once per week",
        estimated_cost="$60-120/month",
        why_recommended="Channels expressive strengths into performance and teamwork.",
        search_keywords=["drama"],
        home_activities=[
            HomeActivityTemplate(
                activity="Puppet show or role-play theatre",
                frequency="Weekly",
                duration="20 minutes",
                tips=["Let the child direct the adults", "Swap roles so everyone plays a different character"],
            ),
        ],
    ),
    ActivityTemplate(
        id="library-reading",
        name="Library Story Time & Reading Club",
        category=CREATIVE,
        target_attributes=["Knowledgeable", "Communicator", "Inquirer"],
        description="Regular library sessions with read-alouds and age-appropriate book clubs.",
        benefits=["Vocabulary", "Background knowledge", "Love of reading"],
        frequency="Weekly",
        estimated_cost="Free-$20/month",
        why_recommended="Broadens knowledge and gives the child new things to wonder and talk about.",
        search_keywords=["library"],
        home_activities=[
            HomeActivityTemplate(
                activity="Shared reading with questions",
                frequency="Daily",
                duration="15-20 minutes",
                tips=["Pause to ask 'why do you think...?'", "Let the child choose some of the books"],
            ),
        ],
    ),
    # --- Leadership & Character (older children) ---
    ActivityTemplate(
        id="debate",
        name="Debate & Public Speaking",
        category=LEADERSHIP,
        target_attributes=["Communicator", "Thinker", "Principled"],
        age_groups=(PRIMARY_UPPER, MIDDLE),
        description="Structured argument, presentation practice and respectful disagreement.",
        benefits=["Clear speaking", "Reasoned argument", "Respect for rules of discussion"],
        frequency="Once per week",
        estimated_cost="$50-120/month",
        why_recommended="Sharpens reasoning and articulate, principled expression.",
        search_keywords=["debate"],
        home_activities=[
            HomeActivityTemplate(
                activity="Dinner-table debate",
                frequency="Weekly",
                duration="15 minutes",
                tips=["Have the child argue the side they disagree with", "Model listening before answering"],
            ),
        ],
    ),
    ActivityTemplate(
        id="community-service",
        name="Community Service Projects",
        category=LEADERSHIP,
        target_attributes=["Caring", "Principled", "Open-minded"],
        age_groups=(PRIMARY_LOWER, PRIMARY_UPPER, MIDDLE),
        description="Family-friendly volunteering such as food drives and park clean-ups.",
        benefits=["Empathy in action", "Responsibility", "Awareness of others' lives"],
        frequency="Monthly",
        estimated_cost="Free",
        why_recommended="Turns caring intentions into real responsibility for others.",
        search_keywords=["volunteer"],
        home_activities=[
            HomeActivityTemplate(
                activity="Family kindness project",
                frequency="Monthly",
                duration="1-2 hours",
                tips=["Let the child pick the cause", "Talk afterwards about who was helped"],
            ),
        ],
    ),
    ActivityTemplate(
        id="chess-club",
        name="Chess Club",
        category=STEM,
        target_attributes=["Thinker", "Reflective"],
        age_groups=(PRIMARY_LOWER, PRIMARY_UPPER, MIDDLE),
        description="Coached chess play covering strategy, patience and reviewing games.",
        benefits=["Planning ahead", "Concentration", "Learning from mistakes"],
        frequency="Once per week",
        estimated_cost="$30-80/month",
        why_recommended="Rewards careful thinking and reviewing what went wrong.",
        search_keywords=["chess"],
        home_activities=[
            HomeActivityTemplate(
                activity="Family strategy game night",
                frequency="Weekly",
                duration="30 minutes",
                tips=["Replay one key move afterwards", "Talk about what each player was planning"],
            ),
        ],
    ),
    ActivityTemplate(
        id="journaling",
        name="Journaling & Reflection Practice",
        category=MINDFULNESS,
        target_attributes=["Reflective", "Communicator"],
        age_groups=(PRIMARY_UPPER, MIDDLE),
        description="Guided journaling about learning, goals and feelings.",
        benefits=["Self-awareness", "Written expression", "Goal setting"],
        frequency="3-4 times per week",
        estimated_cost="Free-$15",
        why_recommended="Builds the habit of looking back on learning and planning next steps.",
        search_keywords=["writing"],
        home_activities=[
            HomeActivityTemplate(
                activity="Three-line daily journal",
                frequency="Most days",
                duration="5-10 minutes",
                tips=["Prompt with 'one thing I learned, one thing that was hard'", "Keep entries private unless shared"],
            ),
        ],
    ),
    ActivityTemplate(
        id="coding-robotics",
        name="Coding & Robotics",
        category=STEM,
        target_attributes=["Thinker", "Inquirer", "Risk-taker"],
        age_groups=(PRIMARY_UPPER, MIDDLE),
        description="Block-based coding and small robot builds with debugging challenges.",
        benefits=["Computational thinking", "Persistence", "Testing ideas"],
        frequency="Once per week",
        estimated_cost="$80-160/month",
        why_recommended="Debugging teaches that trying and failing is part of solving problems.",
        search_keywords=["robotics"],
        home_activities=[
            HomeActivityTemplate(
                activity="Unplugged coding game",
                frequency="Weekly",
                duration="20 minutes",
                tips=["Write step-by-step instructions for a simple task", "Find and fix the 'bug' together"],
            ),
        ],
    ),
)

_BY_NAME: dict[str, ActivityTemplate] = {t.name.casefold(): t for t in ACTIVITY_TEMPLATES}


def find_template(name: Optional[str]) -> Optional[ActivityTemplate]:
    """Template with this name (case-insensitive), if any."""
    if not name:
        return None
    return _BY_NAME.get(name.strip().casefold())


def templates_for(attribute: str, age_group: str) -> list[ActivityTemplate]:
    """Age-eligible templates targeting the attribute, in catalog order."""
    return [
        t for t in ACTIVITY_TEMPLATES
        if attribute in t.target_attributes and t.eligible_for(age_group)
    ]
