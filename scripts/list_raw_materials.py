"""Print the raw materials and stored items each target's plan draws on."""
import sys
from pathlib import Path

from Planner.calculator import Calculator
from Planner.recipe import IN_STORAGE, RAW_MATERIAL
from Planner.stack import Stack

recipe_file = Path(sys.argv[1]) if len(sys.argv) > 1 else Path('recipes/wooden_tools.txt')

targets = [
    'Wooden Shovel (1)',
    'Wooden Pickaxe (1)',
    'Torch (16)',
]

calculator = Calculator()
calculator.load_file(recipe_file)

all_raw = {}

for target in targets:
    calculator.set_target(Stack.parse(target))
    print(f'{target}:')
    for recipe, repeats in calculator.steps:
        if recipe.method in (RAW_MATERIAL, IN_STORAGE):
            print(f'  {recipe.method:<12}  {recipe.result.item} x{repeats}')
            if recipe.method == RAW_MATERIAL:
                all_raw[recipe.result.item] = all_raw.get(recipe.result.item, 0) + repeats
    print()

print('=== ALL RAW MATERIALS ===')
for name in sorted(all_raw):
    print(f'  "{name}": {all_raw[name]}')
