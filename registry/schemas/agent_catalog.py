"""
Agent catalog
The agents the planner may assign steps to, with the description the planning
model sees for each of them.
"""

search_agent = {
    "name": "SearchAgent",
    "description": "Searches the web for current information, facts, news and prices. Returns an answer with source links.",
}

maps_agent = {
    "name": "MapsAgent",
    "description": "Finds places, addresses, opening hours and directions near the user's location. Returns map links as sources.",
}

vision_agent = {
    "name": "VisionAgent",
    "description": "Analyses the image the user attached. Only use when the user attached an image.",
}

video_agent = {
    "name": "VideoAgent",
    "description": "Analyses the video the user attached. Only use when the user attached a video.",
}

email_agent = {
    "name": "EmailAgent",
    "description": "Drafts emails and messages from the information gathered so far.",
}

sheets_agent = {
    "name": "SheetsAgent",
    "description": "Builds a spreadsheet (rows and columns) from the output of the step immediately before it. Place it right after the step whose data it should tabulate.",
}

drive_agent = {
    "name": "DriveAgent",
    "description": "Organises and drafts documents for the user's drive, such as notes, reports and outlines.",
}

orchestrator_agent = {
    "name": "Orchestrator",
    "description": "Reasons over the results of earlier steps. The LAST step of every plan must be an Orchestrator step that writes the final answer.",
}

AGENT_CATALOG = [
    search_agent,
    maps_agent,
    vision_agent,
    video_agent,
    email_agent,
    sheets_agent,
    drive_agent,
    orchestrator_agent,
]
