# pretty print display stuff

GREEN = '\033[32m'
CYAN = '\033[36m'
MAGENTA = '\033[35m'
YELLOW = '\033[33m'
WHITE = '\033[37m'
RESET = '\033[0m'

RARITY_COLORS = {
    'common': WHITE,
    'uncommon': GREEN,
    'rare': CYAN,
    'ultra-rare': MAGENTA,
    'legendary': YELLOW,
}

def print_info(message: str):
    print(f"[INFO]: {message}")

def print_border():
    print("=" * 40)
    print()

def color_rarity(rarity: str) -> str:
    color = RARITY_COLORS.get(rarity, WHITE)
    return f"{color}[{rarity.upper()}]{RESET}"

def print_card(card: dict):
    print(f"{color_rarity(card.get('rarity', 'common'))} {card.get('title', 'Untitled')}")
    if card.get('description'):
        print(f"   {card['description']}")
    if card.get('tags'):
        print(f"   tags: {', '.join(card['tags'])}")
    print(f"   id: {card.get('id')}  template: {card.get('template_id') or '-'}")

def print_wizard(state: dict):
    steps = []
    for step in state['steps']:
        steps.append(f"[{step}]" if step == state['current_step'] else step)
    print(" -> ".join(steps))
    print(f"progress: {state['progress']:.0f}%")
    for step, message in state.get('errors', {}).items():
        print(f"  ! {step}: {message}")

def print_startup_message():
    print_border()
    print("Welcome to Card Studio!")
    print("1. Create a card")
    print("2. My cards")
    print("3. Browse templates")
    print("4. Quit")
    print_border()
