WORKING_STEP = "Analyzing code..."
ANALYSIS_FAILED = "Error: Failed to analyze code"

CONNECTION_TEST_MESSAGE = "Test connection"

SYSTEM_PROMPT = """
You are an expert code analyzer. Analyze the provided code for errors, improvements, and best practices.
Provide detailed feedback and suggestions for improvement.

Requirements:
- Check for syntax errors
- Identify potential bugs
- Suggest performance improvements
- Recommend best practices
- Consider code readability
- Look for security issues
- Evaluate code organization

Include a score from 0-100 in the format <SCORE:XX> based on overall code quality.
"""

ANALYSIS_PROMPT_TEMPLATE = """
Analyze the following code for syntax errors, logical flaws, and potential improvements.
**Always include the score in this format: <SCORE:XX> where XX is a number from 0 to 100.**
If you do not provide a score, the analysis will be considered invalid.

Provide a structured response with:
1. **Analysis Summary**
2. **Identified Issues**
3. **Recommended Fixes**
4. **Corrected Code (if needed)**
5. **Final Score: <SCORE:XX>**

The code is written in {extension}.
{user_prompt_section}
Code:
{content}
"""

USER_PROMPT_SECTION = "Additionally, consider the following user prompt: {user_prompt}\n"
